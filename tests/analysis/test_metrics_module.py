"""Tests for :mod:`stepgraph.analysis.metrics`."""

from __future__ import annotations

import networkx as nx
import pytest

from stepgraph import (
    InvalidAttributeError,
    ReferentialIntegrityError,
    add_cycle,
    add_node,
    add_path,
    create_graph,
    from_networkx,
    get_betweenness,
    get_closeness,
    get_cmty_greedy,
    get_degree_in,
    get_degree_out,
    get_degree_total,
    get_edge_df,
    get_edge_ids,
    get_graph_log,
    get_jaccard_similarity,
    get_node_attrs,
    get_reciprocity,
    get_shortest_path,
    select_nodes_by_id,
    set_edge_attrs,
    to_networkx,
    transform_to_min_spanning_tree,
)


@pytest.fixture
def path3():
    return add_path(create_graph(write_backups=False), n=3)


def test_reciprocity_ignores_self_loops():
    graph = add_cycle(create_graph(write_backups=False), n=3)
    graph, _ = add_node(graph, from_=1, to=1)
    graph, _ = add_node(graph, from_=1, to=1)

    assert get_reciprocity(graph) == pytest.approx(4 / 7)


def test_reciprocity_edge_cases():
    undirected = add_path(create_graph(directed=False, write_backups=False), n=3)
    assert get_reciprocity(undirected) == 1.0
    assert get_reciprocity(create_graph(write_backups=False)) is None


def test_degree_functions(path3):
    assert get_degree_total(path3) == {1: 1, 2: 2, 3: 1}
    assert get_degree_in(path3) == {1: 0, 2: 1, 3: 1}
    assert get_degree_out(path3) == {1: 1, 2: 1, 3: 0}
    assert get_degree_total(path3, normalized=True) == {1: 0.5, 2: 1.0, 3: 0.5}


def test_betweenness_and_closeness(path3):
    assert get_betweenness(path3)[2] == pytest.approx(1.0)

    closeness = get_closeness(path3, mode="out")
    assert closeness[1] == pytest.approx(2 / 3)
    assert closeness[3] == 0.0
    with pytest.raises(InvalidAttributeError):
        get_closeness(path3, mode="sideways")


def test_greedy_communities_split_disjoint_cycles():
    graph = add_cycle(add_cycle(create_graph(write_backups=False), n=3), n=3)

    assert get_cmty_greedy(graph) == {1: 1, 2: 1, 3: 1, 4: 2, 5: 2, 6: 2}


def test_jaccard_similarity(path3):
    matrix = get_jaccard_similarity(path3, nodes=[1, 3])

    assert matrix[1][3] == pytest.approx(1.0)
    assert matrix[3][1] == pytest.approx(1.0)

    full = get_jaccard_similarity(path3)
    assert sorted(full) == [1, 2, 3]
    assert all(sorted(row) == [1, 2, 3] for row in full.values())
    assert full[1][2] == 0.0
    with pytest.raises(ReferentialIntegrityError):
        get_jaccard_similarity(path3, nodes=[9])


def test_shortest_path(path3):
    assert get_shortest_path(path3, 1, 3) == [1, 2, 3]
    assert get_shortest_path(path3, 3, 1) is None
    with pytest.raises(ReferentialIntegrityError):
        get_shortest_path(path3, 1, 9)


def test_metric_can_be_written_as_attribute(path3):
    from stepgraph import set_node_attr_w_fcn

    graph = set_node_attr_w_fcn(path3, "get_betweenness", column_name="bc")

    assert get_node_attrs(graph, "bc") == {1: 0.0, 2: 1.0, 3: 0.0}


def test_min_spanning_tree_keeps_lightest_edges():
    graph = add_cycle(create_graph(write_backups=False), n=3)
    graph = set_edge_attrs(graph, "weight", [1, 2, 3])
    graph = select_nodes_by_id(graph, 1)

    tree = transform_to_min_spanning_tree(graph)

    assert get_edge_ids(tree) == [1, 2]
    assert tree.selection.is_empty
    assert get_graph_log(tree)[-1].function_used == "transform_to_min_spanning_tree"


def test_min_spanning_tree_rejects_non_numeric_weights():
    graph = add_cycle(create_graph(write_backups=False), n=3)
    graph = set_edge_attrs(graph, "weight", ["a", 1, 2])

    with pytest.raises(InvalidAttributeError):
        transform_to_min_spanning_tree(graph)


def test_to_networkx_uses_ids_as_keys(path3):
    converted = to_networkx(path3)

    assert converted.is_directed()
    assert sorted(converted.edges(keys=True)) == [(1, 2, 1), (2, 3, 2)]


def test_from_networkx_relabels_non_positive_nodes():
    graph = from_networkx(nx.path_graph(3), graph_name="imported")

    assert not graph.directed
    assert graph.graph_name == "imported"
    assert get_node_attrs(graph, "label") == {1: 0, 2: 1, 3: 2}
    assert [(row["from"], row["to"]) for row in get_edge_df(graph)] == [(1, 2), (2, 3)]


def test_networkx_conversion_preserves_store(path3):
    restored = from_networkx(to_networkx(path3))

    assert restored.store == path3.store
