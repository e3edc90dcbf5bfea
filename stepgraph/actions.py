"""Operation bookkeeping and deferred graph actions.

Every mutating public function is wrapped by :func:`graph_operation`, which

* checks the incoming graph value,
* records exactly one log entry for the call, collapsing any entries
  appended by nested operations into it,
* re-runs the registered graph actions (outermost calls only), and
* writes a backup snapshot when the graph's settings ask for one.

Nesting depth is tracked with a :class:`contextvars.ContextVar`, so helpers
that call other public operations, and the graph actions themselves, never
re-trigger the action list.
"""
from __future__ import annotations

import functools
import logging
import time
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, TypeVar

from stepgraph.errors import ActionEvaluationError, InvalidAttributeError, InvalidGraphError
from stepgraph.graph.value import GraphAction, GraphValue, graph_object_valid
from stepgraph.ids import utc_now
from stepgraph.persist.snapshot import SnapshotWriter
from stepgraph.router import GRAPH_FUNCTIONS

LOGGER = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_DEPTH: ContextVar[int] = ContextVar("stepgraph_operation_depth", default=0)


def ensure_graph(graph: Any, fcn_name: str) -> None:
    """Raise :class:`InvalidGraphError` unless ``graph`` is a usable graph value."""

    if not graph_object_valid(graph):
        raise InvalidGraphError(fcn_name, "The graph object is not valid")


def is_nested() -> bool:
    """Return ``True`` while running inside another graph operation."""

    return _DEPTH.get() > 0


def record_operation(
    graph: GraphValue,
    function_used: str,
    *,
    since: int,
    started: float,
    time_modified: str,
) -> GraphValue:
    """Replace log entries past ``since`` with one entry for ``function_used``."""

    log = graph.log.collapse(
        since,
        function_used=function_used,
        time_modified=time_modified,
        duration=time.perf_counter() - started,
        nodes=graph.store.node_count(),
        edges=graph.store.edge_count(),
    )
    LOGGER.debug(
        "%s -> version %s (%s nodes, %s edges)",
        function_used,
        log.last_version,
        graph.store.node_count(),
        graph.store.edge_count(),
    )
    return graph.evolve(log=log)


def write_backup(graph: GraphValue) -> GraphValue:
    """Persist ``graph`` when its settings enable backups; always return it unchanged."""

    if graph.settings.write_backups:
        SnapshotWriter(Path(graph.settings.backup_dir)).snapshot(graph)
    return graph


def graph_operation(fn: Optional[F] = None, *, triggers_actions: bool = True):
    """Decorate a ``graph -> graph`` (or ``graph -> (graph, ...)``) operation.

    ``triggers_actions=False`` is used by selection, traversal and
    action-management functions, which log but do not re-run graph actions.
    """

    def _decorate(func: F) -> F:
        fcn_name = func.__name__

        @functools.wraps(func)
        def _wrapper(graph: GraphValue, *args: Any, **kwargs: Any):
            ensure_graph(graph, fcn_name)
            started = time.perf_counter()
            time_modified = utc_now()
            outermost = not is_nested()

            token = _DEPTH.set(_DEPTH.get() + 1)
            try:
                result = func(graph, *args, **kwargs)
            finally:
                _DEPTH.reset(token)

            if isinstance(result, tuple):
                updated, extra = result[0], result[1:]
            else:
                updated, extra = result, ()

            updated = record_operation(
                updated,
                fcn_name,
                since=len(graph.log),
                started=started,
                time_modified=time_modified,
            )
            if outermost:
                if triggers_actions:
                    updated = trigger_graph_actions(updated)
                else:
                    updated = write_backup(updated)
            return (updated, *extra) if extra else updated

        return _wrapper  # type: ignore[return-value]

    if fn is not None:
        return _decorate(fn)
    return _decorate


# ----------------------------------------------------------------------
# Graph actions
# ----------------------------------------------------------------------


@graph_operation(triggers_actions=False)
def add_graph_action(graph: GraphValue, fcn: str, action_name: str | None = None, **args: Any) -> GraphValue:
    """Register ``fcn(graph, **args)`` to run after every graph transformation.

    ``fcn`` must name a function registered in
    :data:`stepgraph.router.GRAPH_FUNCTIONS`. The new action's index is one
    more than the largest existing index.
    """

    GRAPH_FUNCTIONS.resolve(fcn, caller="add_graph_action")
    action = GraphAction(
        index=graph.next_action_index(),
        fcn=fcn,
        args=tuple(args.items()),
        name=action_name,
    )
    return graph.evolve(actions=graph.actions + (action,))


def get_graph_actions(graph: GraphValue) -> List[dict]:
    """Return the registered actions as rows ordered by index."""

    ensure_graph(graph, "get_graph_actions")
    return [action.as_row() for action in sorted(graph.actions, key=lambda item: item.index)]


@graph_operation(triggers_actions=False)
def delete_graph_actions(graph: GraphValue, actions: Iterable[int | str] | int | str) -> GraphValue:
    """Remove actions selected by index or by name."""

    if isinstance(actions, (int, str)):
        actions = [actions]
    targets = set(actions)
    known = {action.index for action in graph.actions} | {
        action.name for action in graph.actions if action.name is not None
    }
    missing = sorted((str(item) for item in targets - known))
    if missing:
        raise InvalidAttributeError("delete_graph_actions", f"Unknown graph actions: {', '.join(missing)}")
    kept = tuple(
        action for action in graph.actions if action.index not in targets and action.name not in targets
    )
    return graph.evolve(actions=kept)


@graph_operation(triggers_actions=False)
def reorder_graph_actions(graph: GraphValue, indices: Iterable[int]) -> GraphValue:
    """Renumber actions so that ``indices`` run first, in the given order.

    Actions not listed keep their relative order after the listed ones.
    """

    order = list(indices)
    by_index = {action.index: action for action in graph.actions}
    unknown = [index for index in order if index not in by_index]
    if unknown or len(set(order)) != len(order):
        raise InvalidAttributeError("reorder_graph_actions", f"Invalid action indices: {order}")
    rest = [index for index in sorted(by_index) if index not in order]
    renumbered = tuple(
        GraphAction(index=position, fcn=by_index[old].fcn, args=by_index[old].args, name=by_index[old].name)
        for position, old in enumerate(order + rest, start=1)
    )
    return graph.evolve(actions=renumbered)


def trigger_graph_actions(graph: GraphValue, *, strict: bool = False) -> GraphValue:
    """Run every graph action in ascending index order.

    Each action receives the graph produced by the previous one. If any
    action fails, the whole batch is abandoned and ``graph`` is returned as it
    was before the first action ran; a warning names the failing action.
    With ``strict=True`` an :class:`ActionEvaluationError` is raised instead.

    A successful batch adds one log entry. With no registered actions the
    call is a no-op.
    """

    fcn_name = "trigger_graph_actions"
    ensure_graph(graph, fcn_name)
    if not graph.actions:
        LOGGER.debug("There are currently no graph actions.")
        return write_backup(graph) if not is_nested() else graph

    started = time.perf_counter()
    time_modified = utc_now()
    outermost = not is_nested()
    current = graph

    token = _DEPTH.set(_DEPTH.get() + 1)
    try:
        for action in sorted(graph.actions, key=lambda item: item.index):
            try:
                current = GRAPH_FUNCTIONS.dispatch(action.fcn, current, action.params)
                ensure_graph(current, action.fcn)
            except Exception as exc:
                error = ActionEvaluationError(fcn_name, index=action.index, name=action.name, cause=exc)
                if strict:
                    raise error from exc
                LOGGER.warning("%s", error)
                return write_backup(graph) if outermost else graph
    finally:
        _DEPTH.reset(token)

    current = record_operation(
        current,
        fcn_name,
        since=len(graph.log),
        started=started,
        time_modified=time_modified,
    )
    if outermost:
        current = write_backup(current)
    return current


__all__ = [
    "add_graph_action",
    "delete_graph_actions",
    "ensure_graph",
    "get_graph_actions",
    "graph_operation",
    "is_nested",
    "record_operation",
    "reorder_graph_actions",
    "trigger_graph_actions",
    "write_backup",
]
