"""Set algebra for the graph's current selection."""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional, Set

from .model import Selection, SelectionMode, coerce_mode
from .store import GraphStore

RowPredicate = Callable[[Mapping[str, Any]], bool]


def combine(current: Iterable[int], incoming: Iterable[int], mode: str | SelectionMode) -> Set[int]:
    """Combine ``incoming`` ids with the ``current`` ones according to ``mode``."""

    mode = coerce_mode(mode)
    current_set, incoming_set = set(current), set(incoming)
    if mode is SelectionMode.REPLACE:
        return incoming_set
    if mode is SelectionMode.UNION:
        return current_set | incoming_set
    if mode is SelectionMode.INTERSECT:
        return current_set & incoming_set
    return current_set - incoming_set


def _matching(
    candidates: Iterable[int],
    rows: Mapping[int, Mapping[str, Any]],
    where: Optional[RowPredicate],
) -> Set[int]:
    # Unknown ids are dropped rather than reported.
    matched = {item for item in candidates if item in rows}
    if where is not None:
        matched = {item for item in matched if where(rows[item])}
    return matched


def select_node_ids(
    store: GraphStore,
    current: Selection,
    nodes: Optional[Iterable[Any]],
    mode: str | SelectionMode,
    where: Optional[RowPredicate] = None,
) -> Selection:
    """Return the node selection resulting from ``nodes``/``where`` and ``mode``.

    ``nodes=None`` considers every node. Any edge selection is discarded.
    """

    rows = {row["id"]: row for row in store.node_table()}
    candidates = rows.keys() if nodes is None else list(nodes)
    chosen = _matching(candidates, rows, where)
    return Selection.of_nodes(combine(current.nodes, chosen, mode))


def select_edge_ids(
    store: GraphStore,
    current: Selection,
    edges: Optional[Iterable[Any]],
    mode: str | SelectionMode,
    where: Optional[RowPredicate] = None,
) -> Selection:
    """Edge counterpart of :func:`select_node_ids`; discards any node selection."""

    rows = {row["id"]: row for row in store.edge_table()}
    candidates = rows.keys() if edges is None else list(edges)
    chosen = _matching(candidates, rows, where)
    return Selection.of_edges(combine(current.edges, chosen, mode))


def prune(selection: Selection, store: GraphStore) -> Selection:
    """Drop ids that no longer exist in ``store``."""

    return Selection(
        nodes=tuple(node for node in selection.nodes if store.has_node(node)),
        edges=tuple(edge for edge in selection.edges if store.has_edge(edge)),
    )


def invert(selection: Selection, store: GraphStore) -> Selection:
    """Return the complement of the active selection kind."""

    if selection.has_edges():
        chosen = set(selection.edges)
        return Selection.of_edges(edge for edge in store.edge_ids() if edge not in chosen)
    chosen = set(selection.nodes)
    return Selection.of_nodes(node for node in store.node_ids() if node not in chosen)
