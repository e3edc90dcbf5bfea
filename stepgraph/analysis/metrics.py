"""Graph metrics delegated to :mod:`networkx`.

The graph tables are converted to a networkx multigraph keyed by node id,
with the edge id as the multigraph key, so results map straight back onto
node and edge ids.
"""
from __future__ import annotations

import logging
from itertools import product
from typing import Any, Dict, Iterable, List, Optional

import networkx as nx

from stepgraph.actions import ensure_graph, graph_operation
from stepgraph.api import create_graph
from stepgraph.errors import InvalidAttributeError, ReferentialIntegrityError
from stepgraph.graph.model import Selection
from stepgraph.graph.store import GraphStore
from stepgraph.graph.value import GraphValue
from stepgraph.router import GRAPH_FUNCTIONS, NODE_ATTR_FUNCTIONS

LOGGER = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Conversion
# ----------------------------------------------------------------------


def to_networkx(graph: GraphValue) -> nx.MultiDiGraph | nx.MultiGraph:
    """Return a networkx multigraph with the graph's ids and attributes."""

    ensure_graph(graph, "to_networkx")
    converted = nx.MultiDiGraph() if graph.directed else nx.MultiGraph()
    for record in graph.store.nodes():
        converted.add_node(record.id, **record.attributes)
    for edge in graph.store.edges():
        converted.add_edge(edge.source, edge.target, key=edge.id, **edge.attributes)
    return converted


def from_networkx(
    nx_graph: nx.Graph,
    *,
    directed: bool | None = None,
    graph_name: str | None = None,
) -> GraphValue:
    """Build a graph value from ``nx_graph``.

    Integer node labels are kept as node ids; other labels are replaced by
    sequential ids and kept in a ``label`` attribute. Integer multigraph keys
    that are unique are kept as edge ids.
    """

    directed = nx_graph.is_directed() if directed is None else directed
    graph = create_graph(directed=directed, graph_name=graph_name)
    store = GraphStore(directed=directed)

    keep_ids = all(isinstance(node, int) and not isinstance(node, bool) and node > 0 for node in nx_graph.nodes)
    mapping: Dict[Any, int] = {}
    for position, (node, data) in enumerate(nx_graph.nodes(data=True), start=1):
        node_id = node if keep_ids else position
        attrs = dict(data)
        if not keep_ids:
            attrs.setdefault("label", node)
        store.insert_node(node_id, attrs)
        mapping[node] = node_id

    if nx_graph.is_multigraph():
        triples = list(nx_graph.edges(keys=True, data=True))
        keys = [key for _, _, key, _ in triples]
        keep_keys = all(isinstance(key, int) and key > 0 for key in keys) and len(set(keys)) == len(keys)
        rows = [(u, v, key if keep_keys else None, data) for u, v, key, data in triples]
    else:
        rows = [(u, v, None, data) for u, v, data in nx_graph.edges(data=True)]

    for position, (source, target, key, data) in enumerate(rows, start=1):
        store.insert_edge(key if key is not None else position, mapping[source], mapping[target], data)

    return graph.evolve(store=store)


def _simple(graph: GraphValue) -> nx.DiGraph | nx.Graph:
    """Collapse parallel edges; used by algorithms that reject multigraphs."""

    multi = to_networkx(graph)
    return nx.DiGraph(multi) if graph.directed else nx.Graph(multi)


# ----------------------------------------------------------------------
# Degree and centrality
# ----------------------------------------------------------------------


def _degrees(graph: GraphValue, mode: str, normalized: bool) -> Dict[int, float]:
    converted = to_networkx(graph)
    if mode == "in" and graph.directed:
        raw = dict(converted.in_degree())
    elif mode == "out" and graph.directed:
        raw = dict(converted.out_degree())
    else:
        raw = dict(converted.degree())
    count = converted.number_of_nodes()
    if not normalized:
        return {node: raw[node] for node in graph.store.node_ids()}
    scale = 1.0 / (count - 1) if count > 1 else 0.0
    return {node: raw[node] * scale for node in graph.store.node_ids()}


def get_degree_total(graph: GraphValue, normalized: bool = False) -> Dict[int, float]:
    """Total degree (in + out) of every node; self-loops count twice."""

    ensure_graph(graph, "get_degree_total")
    return _degrees(graph, "total", normalized)


def get_degree_in(graph: GraphValue, normalized: bool = False) -> Dict[int, float]:
    ensure_graph(graph, "get_degree_in")
    return _degrees(graph, "in", normalized)


def get_degree_out(graph: GraphValue, normalized: bool = False) -> Dict[int, float]:
    ensure_graph(graph, "get_degree_out")
    return _degrees(graph, "out", normalized)


def get_betweenness(graph: GraphValue) -> Dict[int, float]:
    """Unnormalized betweenness centrality of every node."""

    ensure_graph(graph, "get_betweenness")
    return nx.betweenness_centrality(_simple(graph), normalized=False)


def get_closeness(graph: GraphValue, mode: str = "all") -> Dict[int, float]:
    """Closeness centrality using outgoing, incoming or all paths."""

    ensure_graph(graph, "get_closeness")
    if mode not in ("in", "out", "all"):
        raise InvalidAttributeError("get_closeness", "'mode' must be one of 'in', 'out' or 'all'")
    simple = _simple(graph)
    if graph.directed and mode == "all":
        simple = simple.to_undirected()
    elif graph.directed and mode == "out":
        # networkx measures distances *to* each node; reverse for outgoing paths.
        simple = simple.reverse(copy=True)
    return nx.closeness_centrality(simple)


def get_cmty_greedy(graph: GraphValue) -> Dict[int, int]:
    """Community membership (numbered from 1) by greedy modularity maximisation."""

    ensure_graph(graph, "get_cmty_greedy")
    simple = _simple(graph)
    undirected = simple.to_undirected() if graph.directed else simple
    if undirected.number_of_edges() == 0:
        return {node: group for group, node in enumerate(graph.store.node_ids(), start=1)}
    communities = nx.community.greedy_modularity_communities(undirected)
    ordered = sorted((sorted(members) for members in communities), key=lambda members: members[0])
    return {node: group for group, members in enumerate(ordered, start=1) for node in members}


# ----------------------------------------------------------------------
# Similarity, paths and reciprocity
# ----------------------------------------------------------------------


def get_jaccard_similarity(
    graph: GraphValue, nodes: Iterable[int] | None = None
) -> Dict[int, Dict[int, float]]:
    """Jaccard similarity of neighbourhoods for every pair of ``nodes``."""

    ensure_graph(graph, "get_jaccard_similarity")
    simple = _simple(graph)
    undirected = simple.to_undirected() if graph.directed else simple
    chosen = graph.store.node_ids() if nodes is None else list(nodes)
    missing = [node for node in chosen if node not in undirected]
    if missing:
        raise ReferentialIntegrityError("get_jaccard_similarity", f"Nodes {missing} do not exist in the graph")
    matrix: Dict[int, Dict[int, float]] = {node: {} for node in chosen}
    for left, right, value in nx.jaccard_coefficient(undirected, list(product(chosen, chosen))):
        matrix[left][right] = float(value)
    return matrix


def get_shortest_path(
    graph: GraphValue, from_: int, to: int, weight: str | None = None
) -> Optional[List[int]]:
    """Node ids along a shortest path ``from_ -> to``, or ``None`` when unreachable."""

    ensure_graph(graph, "get_shortest_path")
    for node in (from_, to):
        if not graph.store.has_node(node):
            raise ReferentialIntegrityError("get_shortest_path", f"Node {node} does not exist in the graph")
    try:
        return nx.shortest_path(to_networkx(graph), from_, to, weight=weight)
    except nx.NetworkXNoPath:
        return None


def get_reciprocity(graph: GraphValue) -> Optional[float]:
    """Fraction of edges that are reciprocated, ignoring self-loops.

    Undirected graphs always give ``1.0``; a graph without (non-loop) edges
    gives ``None`` because the ratio is undefined.
    """

    ensure_graph(graph, "get_reciprocity")
    edges = [(edge.source, edge.target) for edge in graph.store.edges() if edge.source != edge.target]
    if not edges:
        return None
    if not graph.directed:
        return 1.0
    present = set(edges)
    reciprocated = sum(1 for source, target in edges if (target, source) in present)
    return reciprocated / len(edges)


# ----------------------------------------------------------------------
# Transformations
# ----------------------------------------------------------------------


@graph_operation
def transform_to_min_spanning_tree(graph: GraphValue, weight: str = "weight") -> GraphValue:
    """Keep only the edges of a minimum spanning tree (a forest if disconnected).

    Edge direction is ignored when choosing edges; kept edges retain their
    ids, orientation and attributes. The selection is cleared.
    """

    undirected = to_networkx(graph).to_undirected()
    try:
        kept = {key for _, _, key in nx.minimum_spanning_edges(undirected, weight=weight, keys=True, data=False)}
    except TypeError as exc:
        raise InvalidAttributeError(
            "transform_to_min_spanning_tree", f"Edge attribute '{weight}' must be numeric: {exc}"
        ) from exc
    store = graph.store.clone()
    for edge_id in store.edge_ids():
        if edge_id not in kept:
            store.remove_edge(edge_id)
    LOGGER.debug("Minimum spanning tree keeps %s of %s edges", len(kept), graph.store.edge_count())
    return graph.evolve(store=store, selection=Selection())


for _fcn in (
    get_degree_total,
    get_degree_in,
    get_degree_out,
    get_betweenness,
    get_closeness,
    get_cmty_greedy,
):
    NODE_ATTR_FUNCTIONS.register(_fcn.__name__, _fcn)
del _fcn

GRAPH_FUNCTIONS.register("transform_to_min_spanning_tree", transform_to_min_spanning_tree)
