"""Public API surface for stepgraph.

Every function takes a :class:`~stepgraph.graph.value.GraphValue` as its
first argument. Mutating functions return a new graph value (and, for
``add_node``/``add_edge``, the new id as well); the input is never changed,
so a failed call leaves the caller's graph untouched. Functions named
``get_*``/``count_*``/``is_*`` are pure reads.
"""
from __future__ import annotations

import logging
import re
from numbers import Real
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from stepgraph.actions import ensure_graph, graph_operation
from stepgraph.config import load_settings
from stepgraph.errors import (
    EmptySelectionError,
    InvalidAttributeError,
    InvalidPaletteError,
    ReferentialIntegrityError,
)
from stepgraph.graph import selection as selection_ops
from stepgraph.graph.model import (
    RESERVED_EDGE_COLUMNS,
    RESERVED_NODE_COLUMNS,
    Direction,
    Selection,
    SelectionMode,
    Target,
    coerce_mode,
    reserved_key,
)
from stepgraph.graph.query import TraversalService
from stepgraph.graph.store import GraphStore
from stepgraph.graph.value import GraphValue
from stepgraph.ids import new_id
from stepgraph.obs.events import LogEntry
from stepgraph.router import GRAPH_FUNCTIONS, NODE_ATTR_FUNCTIONS

LOGGER = logging.getLogger(__name__)

RowPredicate = Callable[[Mapping[str, Any]], bool]

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
_EDGE_TOKEN = re.compile(r"^(\d+)(->|--)(\d+)$")


# ----------------------------------------------------------------------
# Internal helpers
# ----------------------------------------------------------------------


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset, range)):
        return list(value)
    return [value]


def _require_nodes(store: GraphStore, nodes: Iterable[Any], fcn_name: str) -> List[int]:
    ids = list(nodes)
    missing = [node for node in ids if not store.has_node(node)]
    if missing:
        raise ReferentialIntegrityError(
            fcn_name, f"Nodes {missing} do not exist in the graph"
        )
    return ids


def _require_edges(store: GraphStore, edges: Iterable[Any], fcn_name: str) -> List[int]:
    ids = list(edges)
    missing = [edge for edge in ids if not store.has_edge(edge)]
    if missing:
        raise ReferentialIntegrityError(
            fcn_name, f"Edges {missing} do not exist in the graph"
        )
    return ids


def _check_attributes(
    attributes: Mapping[str, Any] | None, reserved: Tuple[str, ...], fcn_name: str
) -> Dict[str, Any]:
    if attributes is not None and not isinstance(attributes, Mapping):
        raise InvalidAttributeError(fcn_name, "'attributes' must be a mapping if provided")
    clash = reserved_key(attributes, reserved)
    if clash is not None:
        raise InvalidAttributeError(fcn_name, f"The attribute name '{clash}' is reserved")
    return dict(attributes or {})


def _check_count(n: Any, fcn_name: str, minimum: int = 1) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < minimum:
        raise InvalidAttributeError(fcn_name, f"'n' must be an integer of at least {minimum}")
    return n


def _broadcast(values: Any, size: int, fcn_name: str) -> List[Any]:
    """Expand a scalar to ``size`` copies or check a sequence has ``size`` items."""

    if isinstance(values, (list, tuple)):
        if len(values) == 1:
            return list(values) * size
        if len(values) != size:
            raise InvalidAttributeError(
                fcn_name,
                f"The number of values ({len(values)}) must be 1 or match the number of targets ({size})",
            )
        return list(values)
    return [values] * size


def _node_column(store: GraphStore, column: str, fcn_name: str) -> Dict[int, Any]:
    if column not in store.node_columns():
        raise InvalidAttributeError(fcn_name, f"The node attribute '{column}' does not exist")
    return {record.id: record.attributes.get(column) for record in store.nodes()}


def _edge_column(store: GraphStore, column: str, fcn_name: str) -> Dict[int, Any]:
    if column not in store.edge_columns():
        raise InvalidAttributeError(fcn_name, f"The edge attribute '{column}' does not exist")
    return {record.id: record.attributes.get(column) for record in store.edges()}


def _commit(graph: GraphValue, store: GraphStore, selection: Optional[Selection] = None) -> GraphValue:
    """Attach ``store`` to ``graph`` and drop selected ids that no longer exist."""

    chosen = graph.selection if selection is None else selection
    return graph.evolve(store=store, selection=selection_ops.prune(chosen, store))


# ----------------------------------------------------------------------
# Graph creation and metadata
# ----------------------------------------------------------------------


def create_graph(
    directed: bool = True,
    *,
    graph_name: str | None = None,
    write_backups: bool | None = None,
    backup_dir: str | None = None,
) -> GraphValue:
    """Return an empty graph whose log holds a single ``create_graph`` entry.

    ``write_backups`` and ``backup_dir`` default to the ``STEPGRAPH_*``
    environment settings and are then fixed on the graph value.
    """

    graph = GraphValue(
        store=GraphStore(directed=bool(directed)),
        graph_id=new_id("graph"),
        graph_name=graph_name,
        settings=load_settings(write_backups=write_backups, backup_dir=backup_dir),
    )
    graph = graph.evolve(log=graph.log.append(function_used="create_graph", nodes=0, edges=0))
    LOGGER.debug("Created %s graph %s", "directed" if directed else "undirected", graph.graph_id)
    return graph


def is_graph_directed(graph: GraphValue) -> bool:
    ensure_graph(graph, "is_graph_directed")
    return graph.directed


@graph_operation
def set_graph_directed(graph: GraphValue) -> GraphValue:
    store = graph.store.clone()
    store.directed = True
    return graph.evolve(store=store)


@graph_operation
def set_graph_undirected(graph: GraphValue) -> GraphValue:
    store = graph.store.clone()
    store.directed = False
    return graph.evolve(store=store)


# ----------------------------------------------------------------------
# Node and edge creation
# ----------------------------------------------------------------------


@graph_operation
def add_node(
    graph: GraphValue,
    attributes: Mapping[str, Any] | None = None,
    *,
    from_: Any = None,
    to: Any = None,
) -> Tuple[GraphValue, int]:
    """Add one node and return ``(graph, node_id)``.

    ``from_`` and ``to`` optionally name existing nodes to connect with edges
    ``from_ -> new`` and ``new -> to``.
    """

    attrs = _check_attributes(attributes, RESERVED_NODE_COLUMNS, "add_node")
    sources = _require_nodes(graph.store, _as_list(from_), "add_node")
    targets = _require_nodes(graph.store, _as_list(to), "add_node")

    store = graph.store.clone()
    node_id = store.add_node(attrs)
    for source in sources:
        store.add_edge(source, node_id)
    for target in targets:
        store.add_edge(node_id, target)
    return _commit(graph, store), node_id


@graph_operation
def add_n_nodes(graph: GraphValue, n: int, attributes: Mapping[str, Any] | None = None) -> GraphValue:
    """Add ``n`` nodes sharing the same ``attributes``."""

    n = _check_count(n, "add_n_nodes")
    attrs = _check_attributes(attributes, RESERVED_NODE_COLUMNS, "add_n_nodes")
    store = graph.store.clone()
    for _ in range(n):
        store.add_node(attrs)
    return _commit(graph, store)


@graph_operation
def add_nodes_from_table(graph: GraphValue, rows: Iterable[Mapping[str, Any]]) -> GraphValue:
    """Add one node per row; every row is validated before any node is added."""

    checked = [
        _check_attributes(row, RESERVED_NODE_COLUMNS, "add_nodes_from_table") for row in list(rows)
    ]
    store = graph.store.clone()
    for attrs in checked:
        store.add_node(attrs)
    return _commit(graph, store)


@graph_operation
def add_edge(
    graph: GraphValue,
    from_: int,
    to: int,
    attributes: Mapping[str, Any] | None = None,
) -> Tuple[GraphValue, int]:
    """Add the edge ``from_ -> to`` and return ``(graph, edge_id)``.

    Raises :class:`ReferentialIntegrityError` when either endpoint is missing.
    """

    attrs = _check_attributes(attributes, RESERVED_EDGE_COLUMNS, "add_edge")
    _require_nodes(graph.store, [from_, to], "add_edge")
    store = graph.store.clone()
    edge_id = store.add_edge(from_, to, attrs)
    return _commit(graph, store), edge_id


@graph_operation
def add_edges_from_table(graph: GraphValue, rows: Iterable[Mapping[str, Any]]) -> GraphValue:
    """Add one edge per row holding ``from`` and ``to`` plus attributes.

    All rows are checked first; a single bad row leaves the graph unchanged.
    """

    prepared = []
    for position, row in enumerate(list(rows)):
        if not isinstance(row, Mapping) or "from" not in row or "to" not in row:
            raise InvalidAttributeError(
                "add_edges_from_table", f"Row {position} must provide 'from' and 'to'"
            )
        attrs = {key: value for key, value in row.items() if key not in ("from", "to")}
        attrs = _check_attributes(attrs, RESERVED_EDGE_COLUMNS, "add_edges_from_table")
        _require_nodes(graph.store, [row["from"], row["to"]], "add_edges_from_table")
        prepared.append((row["from"], row["to"], attrs))

    store = graph.store.clone()
    for source, target, attrs in prepared:
        store.add_edge(source, target, attrs)
    return _commit(graph, store)


@graph_operation
def add_edges_w_string(
    graph: GraphValue,
    edges: str,
    attributes: Mapping[str, Any] | None = None,
) -> GraphValue:
    """Add edges written as ``"1->2 2->3"`` (or ``--`` in undirected graphs)."""

    attrs = _check_attributes(attributes, RESERVED_EDGE_COLUMNS, "add_edges_w_string")
    expected = "->" if graph.directed else "--"
    pairs = []
    for token in str(edges).split():
        match = _EDGE_TOKEN.match(token)
        if match is None or match.group(2) != expected:
            raise InvalidAttributeError(
                "add_edges_w_string", f"Cannot parse edge '{token}'; expected 'a{expected}b'"
            )
        pairs.append((int(match.group(1)), int(match.group(3))))
    for source, target in pairs:
        _require_nodes(graph.store, [source, target], "add_edges_w_string")

    store = graph.store.clone()
    for source, target in pairs:
        store.add_edge(source, target, attrs)
    return _commit(graph, store)


@graph_operation
def add_path(
    graph: GraphValue,
    n: int,
    node_attributes: Mapping[str, Any] | None = None,
    edge_attributes: Mapping[str, Any] | None = None,
) -> GraphValue:
    """Add ``n`` new nodes joined as a path ``1 -> 2 -> ... -> n``."""

    n = _check_count(n, "add_path", minimum=2)
    node_attrs = _check_attributes(node_attributes, RESERVED_NODE_COLUMNS, "add_path")
    edge_attrs = _check_attributes(edge_attributes, RESERVED_EDGE_COLUMNS, "add_path")
    store = graph.store.clone()
    created = [store.add_node(node_attrs) for _ in range(n)]
    for source, target in zip(created, created[1:]):
        store.add_edge(source, target, edge_attrs)
    return _commit(graph, store)


@graph_operation
def add_cycle(
    graph: GraphValue,
    n: int,
    node_attributes: Mapping[str, Any] | None = None,
    edge_attributes: Mapping[str, Any] | None = None,
) -> GraphValue:
    """Add ``n`` new nodes joined as a ring, closing with ``n -> 1``."""

    n = _check_count(n, "add_cycle", minimum=3)
    node_attrs = _check_attributes(node_attributes, RESERVED_NODE_COLUMNS, "add_cycle")
    edge_attrs = _check_attributes(edge_attributes, RESERVED_EDGE_COLUMNS, "add_cycle")
    store = graph.store.clone()
    created = [store.add_node(node_attrs) for _ in range(n)]
    for source, target in zip(created, created[1:] + created[:1]):
        store.add_edge(source, target, edge_attrs)
    return _commit(graph, store)


# ----------------------------------------------------------------------
# Deletion
# ----------------------------------------------------------------------


@graph_operation
def delete_node(graph: GraphValue, node: int) -> GraphValue:
    """Delete ``node`` together with every edge incident to it."""

    _require_nodes(graph.store, [node], "delete_node")
    store = graph.store.clone()
    removed = store.remove_node(node)
    LOGGER.debug("delete_node %s cascaded to edges %s", node, removed)
    return _commit(graph, store)


@graph_operation
def delete_edge(graph: GraphValue, edge: int) -> GraphValue:
    """Delete the single edge ``edge``."""

    _require_edges(graph.store, [edge], "delete_edge")
    store = graph.store.clone()
    store.remove_edge(edge)
    return _commit(graph, store)


@graph_operation
def delete_nodes_ws(graph: GraphValue) -> GraphValue:
    """Delete the selected nodes (and their edges), then clear the selection."""

    if not graph.selection.has_nodes():
        raise EmptySelectionError("delete_nodes_ws", "There is no selection of nodes available")
    store = graph.store.clone()
    for node in graph.selection.nodes:
        store.remove_node(node)
    return _commit(graph, store, Selection())


@graph_operation
def delete_edges_ws(graph: GraphValue) -> GraphValue:
    """Delete the selected edges, then clear the selection."""

    if not graph.selection.has_edges():
        raise EmptySelectionError("delete_edges_ws", "There is no selection of edges available")
    store = graph.store.clone()
    for edge in graph.selection.edges:
        store.remove_edge(edge)
    return _commit(graph, store, Selection())


# ----------------------------------------------------------------------
# Selection
# ----------------------------------------------------------------------


@graph_operation(triggers_actions=False)
def select_nodes(
    graph: GraphValue,
    nodes: Iterable[int] | int | None = None,
    mode: str | SelectionMode = SelectionMode.REPLACE,
    where: RowPredicate | None = None,
) -> GraphValue:
    """Select nodes by id and/or by a predicate over node rows.

    ``nodes=None`` considers every node. Ids that do not exist are ignored.
    """

    candidates = None if nodes is None else _as_list(nodes)
    mode = coerce_mode(mode, "select_nodes")
    chosen = selection_ops.select_node_ids(graph.store, graph.selection, candidates, mode, where)
    return graph.evolve(selection=chosen)


@graph_operation(triggers_actions=False)
def select_nodes_by_id(
    graph: GraphValue,
    nodes: Iterable[int] | int,
    mode: str | SelectionMode = SelectionMode.REPLACE,
) -> GraphValue:
    mode = coerce_mode(mode, "select_nodes_by_id")
    chosen = selection_ops.select_node_ids(graph.store, graph.selection, _as_list(nodes), mode)
    return graph.evolve(selection=chosen)


@graph_operation(triggers_actions=False)
def select_edges(
    graph: GraphValue,
    edges: Iterable[int] | int | None = None,
    mode: str | SelectionMode = SelectionMode.REPLACE,
    where: RowPredicate | None = None,
) -> GraphValue:
    """Select edges by id and/or by a predicate over edge rows (with ``from``/``to``)."""

    candidates = None if edges is None else _as_list(edges)
    mode = coerce_mode(mode, "select_edges")
    chosen = selection_ops.select_edge_ids(graph.store, graph.selection, candidates, mode, where)
    return graph.evolve(selection=chosen)


@graph_operation(triggers_actions=False)
def select_edges_by_edge_id(
    graph: GraphValue,
    edges: Iterable[int] | int,
    mode: str | SelectionMode = SelectionMode.REPLACE,
) -> GraphValue:
    mode = coerce_mode(mode, "select_edges_by_edge_id")
    chosen = selection_ops.select_edge_ids(graph.store, graph.selection, _as_list(edges), mode)
    return graph.evolve(selection=chosen)


@graph_operation(triggers_actions=False)
def select_edges_by_node_id(
    graph: GraphValue,
    nodes: Iterable[int] | int,
    mode: str | SelectionMode = SelectionMode.REPLACE,
) -> GraphValue:
    """Select every edge incident to any of ``nodes``."""

    seeds = set(_as_list(nodes))
    chosen = selection_ops.select_edge_ids(
        graph.store,
        graph.selection,
        None,
        coerce_mode(mode, "select_edges_by_node_id"),
        where=lambda row: row["from"] in seeds or row["to"] in seeds,
    )
    return graph.evolve(selection=chosen)


@graph_operation(triggers_actions=False)
def select_last_nodes_created(graph: GraphValue, n: int = 1) -> GraphValue:
    """Select the ``n`` most recently created nodes still present."""

    n = _check_count(n, "select_last_nodes_created")
    newest = sorted(graph.store.node_ids())[-n:]
    if not newest:
        raise EmptySelectionError("select_last_nodes_created", "The graph has no nodes")
    return graph.evolve(selection=Selection.of_nodes(newest))


@graph_operation(triggers_actions=False)
def select_last_edges_created(graph: GraphValue, n: int = 1) -> GraphValue:
    """Select the ``n`` most recently created edges still present."""

    n = _check_count(n, "select_last_edges_created")
    newest = graph.store.edge_ids()[-n:]
    if not newest:
        raise EmptySelectionError("select_last_edges_created", "The graph has no edges")
    return graph.evolve(selection=Selection.of_edges(newest))


@graph_operation(triggers_actions=False)
def invert_selection(graph: GraphValue) -> GraphValue:
    """Select every node (or edge) that is currently not selected."""

    if graph.selection.is_empty:
        raise EmptySelectionError("invert_selection", "There is no selection to invert")
    return graph.evolve(selection=selection_ops.invert(graph.selection, graph.store))


@graph_operation(triggers_actions=False)
def clear_selection(graph: GraphValue) -> GraphValue:
    return graph.evolve(selection=Selection())


def get_selection(graph: GraphValue) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Return ``(node_ids, edge_ids)`` of the current selection."""

    ensure_graph(graph, "get_selection")
    return graph.selection.nodes, graph.selection.edges


# ----------------------------------------------------------------------
# Traversal
# ----------------------------------------------------------------------


def _traverse(
    graph: GraphValue,
    fcn_name: str,
    direction: Direction,
    target: Target,
    *,
    from_edges: bool,
    where: RowPredicate | None,
    add_to_selection: bool,
) -> GraphValue:
    current = graph.selection
    if from_edges and not current.has_edges():
        raise EmptySelectionError(fcn_name, "There is no selection of edges available")
    if not from_edges and not current.has_nodes():
        raise EmptySelectionError(fcn_name, "There is no selection of nodes available")

    found = TraversalService(graph.store).traverse(current, direction, target=target, where=where)
    if found is None:
        LOGGER.debug("%s reached nothing; selection unchanged", fcn_name)
        return graph
    if add_to_selection:
        if found.has_nodes():
            found = Selection.of_nodes(set(found.nodes) | set(current.nodes))
        else:
            found = Selection.of_edges(set(found.edges) | set(current.edges))
    return graph.evolve(selection=found)


@graph_operation(triggers_actions=False)
def trav_out(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    """Move the node selection to successors of the selected nodes."""

    return _traverse(graph, "trav_out", Direction.OUTGOING, Target.NODE,
                     from_edges=False, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_in(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    """Move the node selection to predecessors of the selected nodes."""

    return _traverse(graph, "trav_in", Direction.INCOMING, Target.NODE,
                     from_edges=False, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_both(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    return _traverse(graph, "trav_both", Direction.BOTH, Target.NODE,
                     from_edges=False, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_out_edge(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    """Select the outgoing edges of the selected nodes."""

    return _traverse(graph, "trav_out_edge", Direction.OUTGOING, Target.EDGE,
                     from_edges=False, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_in_edge(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    """Select the incoming edges of the selected nodes."""

    return _traverse(graph, "trav_in_edge", Direction.INCOMING, Target.EDGE,
                     from_edges=False, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_both_edge(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    return _traverse(graph, "trav_both_edge", Direction.BOTH, Target.EDGE,
                     from_edges=False, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_out_node(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    """Move from selected edges to the nodes they point to."""

    return _traverse(graph, "trav_out_node", Direction.OUTGOING, Target.NODE,
                     from_edges=True, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_in_node(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    """Move from selected edges to the nodes they start from."""

    return _traverse(graph, "trav_in_node", Direction.INCOMING, Target.NODE,
                     from_edges=True, where=where, add_to_selection=add_to_selection)


@graph_operation(triggers_actions=False)
def trav_reverse_edge(graph: GraphValue, where: RowPredicate | None = None, add_to_selection: bool = False) -> GraphValue:
    """Select the edges running opposite to the selected edges."""

    return _traverse(graph, "trav_reverse_edge", Direction.REVERSE, Target.EDGE,
                     from_edges=True, where=where, add_to_selection=add_to_selection)


def get_nbrs(graph: GraphValue, nodes: Iterable[int] | int) -> Optional[List[int]]:
    """Return the sorted neighbours of ``nodes`` in either direction, or ``None``."""

    ensure_graph(graph, "get_nbrs")
    return TraversalService(graph.store).neighbors(_as_list(nodes))


def get_predecessors(graph: GraphValue, node: int) -> Optional[List[int]]:
    ensure_graph(graph, "get_predecessors")
    _require_nodes(graph.store, [node], "get_predecessors")
    return graph.store.predecessors(node) or None


def get_successors(graph: GraphValue, node: int) -> Optional[List[int]]:
    ensure_graph(graph, "get_successors")
    _require_nodes(graph.store, [node], "get_successors")
    return graph.store.successors(node) or None


# ----------------------------------------------------------------------
# Attributes
# ----------------------------------------------------------------------


@graph_operation
def set_node_attrs(
    graph: GraphValue,
    node_attr: str,
    values: Any,
    nodes: Iterable[int] | int | None = None,
) -> GraphValue:
    """Set ``node_attr`` on ``nodes`` (default: all nodes, in table order).

    ``values`` is a scalar applied everywhere or a list/tuple with one value
    per target node. ``None`` clears the attribute.
    """

    if node_attr in RESERVED_NODE_COLUMNS:
        raise InvalidAttributeError("set_node_attrs", f"The attribute name '{node_attr}' is reserved")
    targets = graph.store.node_ids() if nodes is None else _as_list(nodes)
    _require_nodes(graph.store, targets, "set_node_attrs")
    expanded = _broadcast(values, len(targets), "set_node_attrs")
    store = graph.store.clone()
    for node, value in zip(targets, expanded):
        store.set_node_attribute(node, node_attr, value)
    return _commit(graph, store)


@graph_operation
def set_node_attrs_ws(graph: GraphValue, node_attr: str, value: Any) -> GraphValue:
    """Set ``node_attr`` to ``value`` on every selected node; the selection is kept."""

    if not graph.selection.has_nodes():
        raise EmptySelectionError("set_node_attrs_ws", "There is no selection of nodes available")
    return set_node_attrs(graph, node_attr, value, nodes=list(graph.selection.nodes))


@graph_operation
def set_edge_attrs(
    graph: GraphValue,
    edge_attr: str,
    values: Any,
    edges: Iterable[int] | int | None = None,
) -> GraphValue:
    """Edge counterpart of :func:`set_node_attrs`."""

    if edge_attr in RESERVED_EDGE_COLUMNS:
        raise InvalidAttributeError("set_edge_attrs", f"The attribute name '{edge_attr}' is reserved")
    targets = graph.store.edge_ids() if edges is None else _as_list(edges)
    _require_edges(graph.store, targets, "set_edge_attrs")
    expanded = _broadcast(values, len(targets), "set_edge_attrs")
    store = graph.store.clone()
    for edge, value in zip(targets, expanded):
        store.set_edge_attribute(edge, edge_attr, value)
    return _commit(graph, store)


@graph_operation
def set_edge_attrs_ws(graph: GraphValue, edge_attr: str, value: Any) -> GraphValue:
    if not graph.selection.has_edges():
        raise EmptySelectionError("set_edge_attrs_ws", "There is no selection of edges available")
    return set_edge_attrs(graph, edge_attr, value, edges=list(graph.selection.edges))


def get_node_attrs(graph: GraphValue, node_attr: str, nodes: Iterable[int] | int | None = None) -> Dict[int, Any]:
    """Return ``{node_id: value}`` for ``node_attr``; absent values are ``None``."""

    ensure_graph(graph, "get_node_attrs")
    column = _node_column(graph.store, node_attr, "get_node_attrs")
    if nodes is None:
        return column
    targets = _require_nodes(graph.store, _as_list(nodes), "get_node_attrs")
    return {node: column[node] for node in targets}


def get_node_attrs_ws(graph: GraphValue, node_attr: str) -> Dict[int, Any]:
    ensure_graph(graph, "get_node_attrs_ws")
    if not graph.selection.has_nodes():
        raise EmptySelectionError("get_node_attrs_ws", "There is no selection of nodes available")
    return get_node_attrs(graph, node_attr, nodes=list(graph.selection.nodes))


def get_edge_attrs(graph: GraphValue, edge_attr: str, edges: Iterable[int] | int | None = None) -> Dict[int, Any]:
    """Return ``{edge_id: value}`` for ``edge_attr``; absent values are ``None``."""

    ensure_graph(graph, "get_edge_attrs")
    column = _edge_column(graph.store, edge_attr, "get_edge_attrs")
    if edges is None:
        return column
    targets = _require_edges(graph.store, _as_list(edges), "get_edge_attrs")
    return {edge: column[edge] for edge in targets}


def get_edge_attrs_ws(graph: GraphValue, edge_attr: str) -> Dict[int, Any]:
    ensure_graph(graph, "get_edge_attrs_ws")
    if not graph.selection.has_edges():
        raise EmptySelectionError("get_edge_attrs_ws", "There is no selection of edges available")
    return get_edge_attrs(graph, edge_attr, edges=list(graph.selection.edges))


@graph_operation
def copy_node_attrs(graph: GraphValue, node_attr_from: str, node_attr_to: str) -> GraphValue:
    """Copy every value of ``node_attr_from`` into ``node_attr_to``."""

    column = _node_column(graph.store, node_attr_from, "copy_node_attrs")
    return set_node_attrs(graph, node_attr_to, list(column.values()), nodes=list(column))


@graph_operation
def rescale_node_attrs(
    graph: GraphValue,
    node_attr_from: str,
    to_lower_bound: float = 0.0,
    to_upper_bound: float = 1.0,
    node_attr_to: str | None = None,
) -> GraphValue:
    """Linearly rescale a numeric node attribute into ``[to_lower_bound, to_upper_bound]``.

    Missing values stay missing. A constant column maps to the middle of the
    target range. The result replaces ``node_attr_from`` unless
    ``node_attr_to`` is given.
    """

    column = _node_column(graph.store, node_attr_from, "rescale_node_attrs")
    present = [value for value in column.values() if value is not None]
    if not all(isinstance(value, Real) and not isinstance(value, bool) for value in present):
        raise InvalidAttributeError(
            "rescale_node_attrs", f"The node attribute '{node_attr_from}' is not numeric"
        )
    low, high = (min(present), max(present)) if present else (0, 0)
    span = high - low

    def _scale(value: Any) -> Any:
        if value is None:
            return None
        if span == 0:
            return (to_lower_bound + to_upper_bound) / 2
        return to_lower_bound + (value - low) / span * (to_upper_bound - to_lower_bound)

    rescaled = [_scale(value) for value in column.values()]
    return set_node_attrs(graph, node_attr_to or node_attr_from, rescaled, nodes=list(column))


def _with_alpha(color: str, alpha: int | None) -> str:
    """Append ``alpha`` (a 0-100 opacity) as a two-digit hex channel, e.g. 50 -> ``80``.

    ``None`` and 100 leave ``color`` as a plain ``#RRGGBB`` value.
    """

    if alpha is None or alpha == 100:
        return color
    return f"{color}{round(alpha / 100 * 255):02X}"


def _sorted_categories(values: Iterable[Any]) -> List[Any]:
    distinct = list(dict.fromkeys(value for value in values if value is not None))
    try:
        return sorted(distinct)
    except TypeError:
        return sorted(distinct, key=str)


@graph_operation
def colorize_node_attrs(
    graph: GraphValue,
    node_attr_from: str,
    node_attr_to: str,
    palette: Sequence[str],
    cut_points: Sequence[float] | None = None,
    alpha: int | None = None,
    reverse_palette: bool = False,
    default_color: str = "#D9D9D9",
) -> GraphValue:
    """Derive a colour attribute from the values of another node attribute.

    Without ``cut_points`` each distinct value (in sorted order) receives the
    next palette colour. With ``cut_points`` numeric values are bucketed into
    ``[cut_points[i], cut_points[i + 1])``. Unmatched and missing values get
    ``default_color``. ``alpha`` (0-100) appends an alpha channel.
    """

    fcn_name = "colorize_node_attrs"
    column = _node_column(graph.store, node_attr_from, fcn_name)
    colors = [str(color) for color in _as_list(palette)]
    if not colors or not all(_HEX_COLOR.match(color) for color in colors + [default_color]):
        raise InvalidPaletteError(fcn_name, "The color palette contains invalid hexadecimal values")
    if alpha is not None and not 0 <= alpha <= 100:
        raise InvalidAttributeError(fcn_name, "'alpha' must be between 0 and 100")

    if cut_points is None:
        categories = _sorted_categories(column.values())
        needed = len(categories)
    else:
        cut_points = list(cut_points)
        if len(cut_points) < 2 or cut_points != sorted(cut_points):
            raise InvalidAttributeError(fcn_name, "'cut_points' must be at least two ascending values")
        if not all(isinstance(value, Real) for value in column.values() if value is not None):
            raise InvalidAttributeError(
                fcn_name, f"The node attribute '{node_attr_from}' must be numeric to use 'cut_points'"
            )
        needed = len(cut_points) - 1
    if len(colors) < needed:
        raise InvalidPaletteError(
            fcn_name, f"The color palette has {len(colors)} colors but {needed} are required"
        )

    chosen = [color.upper() for color in colors[:needed]]
    if reverse_palette:
        chosen.reverse()
    fallback = _with_alpha(default_color.upper(), alpha)

    def _color_for(value: Any) -> str:
        if value is None:
            return fallback
        if cut_points is None:
            return _with_alpha(chosen[categories.index(value)], alpha)
        for position in range(needed):
            if cut_points[position] <= value < cut_points[position + 1]:
                return _with_alpha(chosen[position], alpha)
        return fallback

    colorized = [_color_for(value) for value in column.values()]
    return set_node_attrs(graph, node_attr_to, colorized, nodes=list(column))


@graph_operation
def set_node_attr_w_fcn(graph: GraphValue, node_attr_fcn: str, column_name: str | None = None) -> GraphValue:
    """Write the output of a registered node-attribute function as a column.

    ``node_attr_fcn`` names a function in
    :data:`stepgraph.router.NODE_ATTR_FUNCTIONS` (for example
    ``"get_betweenness"``). The column defaults to the function name without
    its ``get_`` prefix.
    """

    fcn = NODE_ATTR_FUNCTIONS.resolve(node_attr_fcn, caller="set_node_attr_w_fcn")
    values = fcn(graph)
    nodes = graph.store.node_ids()
    column = column_name or node_attr_fcn.removeprefix("get_")
    return set_node_attrs(graph, column, [values.get(node) for node in nodes], nodes=nodes)


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------


def get_node_df(graph: GraphValue) -> List[Dict[str, Any]]:
    """Return the node table as rows sharing one column schema."""

    ensure_graph(graph, "get_node_df")
    return graph.store.node_table()


def get_edge_df(graph: GraphValue) -> List[Dict[str, Any]]:
    """Return the edge table as rows with ``id``, ``from``, ``to`` and attributes."""

    ensure_graph(graph, "get_edge_df")
    return graph.store.edge_table()


def get_node_ids(graph: GraphValue) -> List[int]:
    ensure_graph(graph, "get_node_ids")
    return graph.store.node_ids()


def get_edge_ids(graph: GraphValue) -> List[int]:
    ensure_graph(graph, "get_edge_ids")
    return graph.store.edge_ids()


def count_nodes(graph: GraphValue) -> int:
    ensure_graph(graph, "count_nodes")
    return graph.store.node_count()


def count_edges(graph: GraphValue) -> int:
    ensure_graph(graph, "count_edges")
    return graph.store.edge_count()


def get_graph_log(graph: GraphValue) -> List[LogEntry]:
    ensure_graph(graph, "get_graph_log")
    return list(graph.log.history())


# Functions that can be registered as graph actions.
for _fcn in (
    set_graph_directed,
    set_graph_undirected,
    add_n_nodes,
    add_nodes_from_table,
    add_edges_from_table,
    add_edges_w_string,
    add_path,
    add_cycle,
    delete_node,
    delete_edge,
    delete_nodes_ws,
    delete_edges_ws,
    select_nodes,
    select_nodes_by_id,
    select_edges,
    select_edges_by_edge_id,
    select_edges_by_node_id,
    select_last_nodes_created,
    select_last_edges_created,
    invert_selection,
    clear_selection,
    trav_out,
    trav_in,
    trav_both,
    trav_out_edge,
    trav_in_edge,
    trav_both_edge,
    trav_out_node,
    trav_in_node,
    trav_reverse_edge,
    set_node_attrs,
    set_node_attrs_ws,
    set_edge_attrs,
    set_edge_attrs_ws,
    copy_node_attrs,
    rescale_node_attrs,
    colorize_node_attrs,
    set_node_attr_w_fcn,
):
    GRAPH_FUNCTIONS.register(_fcn.__name__, _fcn)
del _fcn
