"""The immutable graph value threaded through every public operation."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from stepgraph.config import GraphSettings
from stepgraph.obs.events import ActionLog

from .model import Selection
from .store import GraphStore


def quote_value(value: Any) -> str:
    """Render ``value`` as it appears in a graph action expression."""

    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    if callable(value):
        return getattr(value, "__name__", repr(value))
    return repr(value)


@dataclass(frozen=True)
class GraphAction:
    """A deferred call: a registered function name plus its named arguments.

    The arguments are kept as given, so string values come back exactly as
    stored when the action is evaluated. :attr:`expression` is only a
    human-readable rendering of the call.
    """

    index: int
    fcn: str
    args: Tuple[Tuple[str, Any], ...] = ()
    name: Optional[str] = None

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self.args)

    @property
    def expression(self) -> str:
        rendered = ["graph = graph"]
        rendered.extend(f"{key} = {quote_value(value)}" for key, value in self.args)
        return f"{self.fcn}({', '.join(rendered)})"

    def as_row(self) -> Dict[str, Any]:
        return {"action_index": self.index, "action_name": self.name, "expression": self.expression}


@dataclass(frozen=True)
class GraphValue:
    """Everything that makes up one version of a graph.

    Instances are never modified. Operations build the next version with
    :meth:`evolve`, cloning the :class:`GraphStore` before editing it.
    """

    store: GraphStore
    graph_id: str
    graph_name: Optional[str] = None
    selection: Selection = field(default_factory=Selection)
    actions: Tuple[GraphAction, ...] = ()
    log: ActionLog = field(default_factory=ActionLog)
    settings: GraphSettings = field(default_factory=GraphSettings)

    @property
    def directed(self) -> bool:
        return self.store.directed

    @property
    def version(self) -> int:
        return self.log.last_version

    def evolve(self, **changes: Any) -> "GraphValue":
        """Return a copy with ``changes`` applied."""

        return replace(self, **changes)

    def next_action_index(self) -> int:
        return max((action.index for action in self.actions), default=0) + 1

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        kind = "directed" if self.directed else "undirected"
        return (
            f"{self.__class__.__name__}(id={self.graph_id!r}, {kind}, "
            f"nodes={self.store.node_count()}, edges={self.store.edge_count()}, "
            f"version={self.version})"
        )


def graph_object_valid(graph: Any) -> bool:
    """Return ``True`` when ``graph`` looks like a usable :class:`GraphValue`."""

    if not isinstance(graph, GraphValue):
        return False
    if not isinstance(graph.store, GraphStore) or not isinstance(graph.log, ActionLog):
        return False
    return isinstance(graph.selection, Selection)
