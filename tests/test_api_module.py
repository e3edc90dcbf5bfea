"""Tests for :mod:`stepgraph.api`."""

from __future__ import annotations

import pytest

from stepgraph import (
    EmptySelectionError,
    InvalidAttributeError,
    InvalidPaletteError,
    ReferentialIntegrityError,
    add_cycle,
    add_edge,
    add_edges_from_table,
    add_edges_w_string,
    add_n_nodes,
    add_node,
    add_nodes_from_table,
    add_path,
    clear_selection,
    colorize_node_attrs,
    copy_node_attrs,
    count_edges,
    count_nodes,
    create_graph,
    delete_edge,
    delete_edges_ws,
    delete_node,
    delete_nodes_ws,
    get_edge_attrs,
    get_edge_attrs_ws,
    get_edge_df,
    get_edge_ids,
    get_graph_log,
    get_nbrs,
    get_node_attrs,
    get_node_attrs_ws,
    get_node_df,
    get_node_ids,
    get_predecessors,
    get_selection,
    get_successors,
    invert_selection,
    is_graph_directed,
    rescale_node_attrs,
    select_edges,
    select_edges_by_edge_id,
    select_edges_by_node_id,
    select_last_edges_created,
    select_last_nodes_created,
    select_nodes,
    select_nodes_by_id,
    set_edge_attrs,
    set_edge_attrs_ws,
    set_graph_undirected,
    set_node_attr_w_fcn,
    set_node_attrs,
    set_node_attrs_ws,
    trav_both,
    trav_both_edge,
    trav_in,
    trav_in_edge,
    trav_in_node,
    trav_out,
    trav_out_edge,
    trav_out_node,
    trav_reverse_edge,
)


@pytest.fixture
def path5():
    return add_path(create_graph(write_backups=False), n=5)


# -------------------- Creation --------------------


def test_create_graph_starts_log_at_version_one():
    graph = create_graph(directed=False, graph_name="g", write_backups=False)

    log = get_graph_log(graph)
    assert [(entry.version_id, entry.function_used) for entry in log] == [(1, "create_graph")]
    assert not is_graph_directed(graph)
    assert count_nodes(graph) == 0 and count_edges(graph) == 0
    assert graph.graph_name == "g"


def test_add_node_returns_new_id_and_connects(path5):
    graph, node = add_node(path5, {"type": "leaf"}, from_=1, to=[2, 3])

    assert node == 6
    assert get_successors(graph, 6) == [2, 3]
    assert get_predecessors(graph, 6) == [1]
    assert count_edges(graph) == 7


def test_add_node_rejects_reserved_attribute(path5):
    with pytest.raises(InvalidAttributeError):
        add_node(path5, {"id": 10})


def test_add_edge_requires_existing_nodes(path5):
    with pytest.raises(ReferentialIntegrityError):
        add_edge(path5, 1, 99)

    assert count_edges(path5) == 4
    assert len(get_graph_log(path5)) == 2


def test_original_graph_is_never_modified(path5):
    updated = set_node_attrs(path5, "color", "red")

    assert "color" not in get_node_df(path5)[0]
    assert get_node_attrs(updated, "color")[1] == "red"


def test_add_n_nodes_and_table_rows():
    graph = add_n_nodes(create_graph(write_backups=False), 2, {"type": "a"})
    graph = add_nodes_from_table(graph, [{"type": "b", "value": 1}, {"value": 2}])

    assert get_node_df(graph) == [
        {"id": 1, "type": "a", "value": None},
        {"id": 2, "type": "a", "value": None},
        {"id": 3, "type": "b", "value": 1},
        {"id": 4, "type": None, "value": 2},
    ]


def test_add_edges_from_table_is_all_or_nothing():
    graph = add_n_nodes(create_graph(write_backups=False), 3)

    graph = add_edges_from_table(graph, [{"from": 1, "to": 2, "rel": "x"}, {"from": 2, "to": 3}])
    assert get_edge_df(graph) == [
        {"id": 1, "from": 1, "to": 2, "rel": "x"},
        {"id": 2, "from": 2, "to": 3, "rel": None},
    ]

    with pytest.raises(ReferentialIntegrityError):
        add_edges_from_table(graph, [{"from": 3, "to": 1}, {"from": 3, "to": 9}])
    with pytest.raises(InvalidAttributeError):
        add_edges_from_table(graph, [{"from": 3}])


def test_add_edges_w_string():
    graph = add_n_nodes(create_graph(write_backups=False), 3)
    graph = add_edges_w_string(graph, "1->2 2->3", {"rel": "a"})

    assert get_edge_attrs(graph, "rel") == {1: "a", 2: "a"}
    with pytest.raises(InvalidAttributeError):
        add_edges_w_string(graph, "1--3")

    undirected = add_n_nodes(create_graph(directed=False, write_backups=False), 2)
    assert count_edges(add_edges_w_string(undirected, "1--2")) == 1


def test_add_path_and_cycle_shapes():
    graph = add_cycle(create_graph(write_backups=False), n=3)

    assert [(row["from"], row["to"]) for row in get_edge_df(graph)] == [(1, 2), (2, 3), (3, 1)]
    with pytest.raises(InvalidAttributeError):
        add_cycle(graph, n=2)
    with pytest.raises(InvalidAttributeError):
        add_path(graph, n=1)


# -------------------- Deletion --------------------


def test_delete_node_cascades(path5):
    graph = delete_node(path5, 3)

    assert get_node_ids(graph) == [1, 2, 4, 5]
    assert [(row["from"], row["to"]) for row in get_edge_df(graph)] == [(1, 2), (4, 5)]
    with pytest.raises(ReferentialIntegrityError):
        delete_node(graph, 3)


def test_delete_edge_and_selection_is_pruned(path5):
    graph = select_edges_by_edge_id(path5, [1, 2])
    graph = delete_edge(graph, 2)

    assert get_edge_ids(graph) == [1, 3, 4]
    assert get_selection(graph) == ((), (1,))


def test_delete_with_selection(path5):
    graph = delete_nodes_ws(select_nodes_by_id(path5, [1, 5]))
    assert get_node_ids(graph) == [2, 3, 4]
    assert get_selection(graph) == ((), ())

    graph = delete_edges_ws(select_edges(graph, where=lambda row: row["from"] == 2))
    assert get_edge_ids(graph) == [3]

    with pytest.raises(EmptySelectionError):
        delete_nodes_ws(graph)
    with pytest.raises(EmptySelectionError):
        delete_edges_ws(graph)


def test_set_graph_undirected_keeps_edge_orientation(path5):
    graph = set_graph_undirected(path5)

    assert not is_graph_directed(graph)
    assert get_edge_df(graph)[0]["from"] == 1
    assert get_successors(graph, 2) == [3]


# -------------------- Selection --------------------


def test_select_nodes_by_predicate_and_modes():
    graph = add_nodes_from_table(create_graph(write_backups=False), [{"value": v} for v in (1, 5, 10)])

    graph = select_nodes(graph, where=lambda row: row["value"] > 2)
    assert get_selection(graph)[0] == (2, 3)

    graph = select_nodes_by_id(graph, [1, 2], mode="intersect")
    assert get_selection(graph)[0] == (2,)

    graph = select_nodes_by_id(graph, [1, 99], mode="union")
    assert get_selection(graph)[0] == (1, 2)

    graph = select_nodes_by_id(graph, 1, mode="difference")
    assert get_selection(graph)[0] == (2,)


def test_selection_is_idempotent(path5):
    once = select_nodes_by_id(path5, [2, 4])
    twice = select_nodes_by_id(once, [2, 4])

    assert twice.selection == once.selection


def test_selecting_nodes_clears_edge_selection(path5):
    graph = select_edges_by_node_id(path5, 3)
    assert get_selection(graph) == ((), (2, 3))

    graph = select_nodes_by_id(graph, 1)
    assert get_selection(graph) == ((1,), ())


def test_select_last_created_and_invert(path5):
    graph = select_last_nodes_created(path5, 2)
    assert get_selection(graph)[0] == (4, 5)

    graph = invert_selection(graph)
    assert get_selection(graph)[0] == (1, 2, 3)

    graph = select_last_edges_created(graph)
    assert get_selection(graph) == ((), (4,))

    with pytest.raises(EmptySelectionError):
        invert_selection(clear_selection(graph))


# -------------------- Traversal --------------------


def test_traversals_walk_the_path(path5):
    graph = select_nodes_by_id(path5, 3)

    assert get_selection(trav_out(graph))[0] == (4,)
    assert get_selection(trav_in(graph))[0] == (2,)
    assert get_selection(trav_both(graph))[0] == (2, 4)
    assert get_selection(trav_out(graph, add_to_selection=True))[0] == (3, 4)


def test_traversal_between_nodes_and_edges(path5):
    graph = select_nodes_by_id(path5, 3)

    assert get_selection(trav_out_edge(graph))[1] == (3,)
    assert get_selection(trav_in_edge(graph))[1] == (2,)
    assert get_selection(trav_both_edge(graph))[1] == (2, 3)

    edges = trav_out_edge(graph)
    assert get_selection(trav_out_node(edges))[0] == (4,)
    assert get_selection(trav_in_node(edges))[0] == (3,)


def test_traversal_with_no_result_keeps_selection_and_logs(path5):
    graph = select_nodes_by_id(path5, 5)

    moved = trav_out(graph)

    assert get_selection(moved) == get_selection(graph)
    assert get_graph_log(moved)[-1].function_used == "trav_out"
    assert len(get_graph_log(moved)) == len(get_graph_log(graph)) + 1


def test_traversal_with_where_filter():
    graph = add_nodes_from_table(create_graph(write_backups=False), [{"t": "a"}, {"t": "b"}, {"t": "c"}])
    graph = add_edges_w_string(graph, "1->2 1->3")
    graph = select_nodes_by_id(graph, 1)

    assert get_selection(trav_out(graph, where=lambda row: row["t"] == "c"))[0] == (3,)


def test_traversal_requires_selection(path5):
    with pytest.raises(EmptySelectionError):
        trav_out(path5)
    with pytest.raises(EmptySelectionError):
        trav_out_node(select_nodes_by_id(path5, 1))


def test_trav_reverse_edge():
    graph = add_n_nodes(create_graph(write_backups=False), 2)
    graph = add_edges_w_string(graph, "1->2 2->1")
    graph = select_edges_by_edge_id(graph, 1)

    assert get_selection(trav_reverse_edge(graph)) == ((), (2,))


def test_get_nbrs_on_path(path5):
    assert get_nbrs(path5, 2) == [1, 3]
    assert get_nbrs(path5, 3) == [2, 4]
    assert get_nbrs(path5, [1, 5]) == [2, 4]

    isolated, _ = add_node(path5)
    assert get_nbrs(isolated, 6) is None


# -------------------- Attributes --------------------


def test_set_and_get_attrs_with_selection(path5):
    graph = select_nodes_by_id(path5, [1, 2])
    graph = set_node_attrs_ws(graph, "color", "green")

    assert get_node_attrs(graph, "color") == {1: "green", 2: "green", 3: None, 4: None, 5: None}
    assert get_node_attrs_ws(graph, "color") == {1: "green", 2: "green"}
    assert get_selection(graph)[0] == (1, 2)

    graph = set_edge_attrs_ws(select_edges_by_edge_id(graph, 4), "weight", 2.0)
    assert get_edge_attrs_ws(graph, "weight") == {4: 2.0}


def test_ws_functions_require_selection(path5):
    with pytest.raises(EmptySelectionError):
        set_node_attrs_ws(path5, "color", "red")
    with pytest.raises(EmptySelectionError):
        set_edge_attrs_ws(path5, "color", "red")
    with pytest.raises(EmptySelectionError):
        get_node_attrs_ws(path5, "color")


def test_set_attrs_with_value_lists(path5):
    graph = set_node_attrs(path5, "value", [1, 2], nodes=[4, 5])
    graph = set_edge_attrs(graph, "weight", [1, 2, 3, 4])

    assert get_node_attrs(graph, "value", nodes=[4, 5]) == {4: 1, 5: 2}
    assert get_edge_attrs(graph, "weight")[4] == 4
    with pytest.raises(InvalidAttributeError):
        set_node_attrs(graph, "value", [1, 2, 3])
    with pytest.raises(InvalidAttributeError):
        set_edge_attrs(graph, "from", 1)
    with pytest.raises(InvalidAttributeError):
        get_node_attrs(graph, "missing")


def test_copy_and_rescale_record_single_log_entry():
    graph = add_nodes_from_table(create_graph(write_backups=False), [{"value": v} for v in (0, 5, 10)])
    before = len(get_graph_log(graph))

    graph = copy_node_attrs(graph, "value", "copy")
    graph = rescale_node_attrs(graph, "copy", node_attr_to="scaled")

    assert get_node_attrs(graph, "copy") == {1: 0, 2: 5, 3: 10}
    assert get_node_attrs(graph, "scaled") == {1: 0.0, 2: 0.5, 3: 1.0}
    assert [entry.function_used for entry in get_graph_log(graph)[before:]] == [
        "copy_node_attrs",
        "rescale_node_attrs",
    ]


def test_colorize_by_category():
    graph = add_nodes_from_table(create_graph(write_backups=False), [{"t": "b"}, {"t": "a"}, {"t": "b"}, {}])

    graph = colorize_node_attrs(graph, "t", "color", palette=["#ff0000", "#00ff00"])

    assert get_node_attrs(graph, "color") == {1: "#00FF00", 2: "#FF0000", 3: "#00FF00", 4: "#D9D9D9"}


def test_colorize_with_cut_points_and_alpha():
    graph = add_nodes_from_table(create_graph(write_backups=False), [{"v": 1}, {"v": 5}, {"v": 10}])

    graph = colorize_node_attrs(
        graph, "v", "color", palette=["#000000", "#FFFFFF"], cut_points=[0, 5, 10], alpha=50
    )

    assert get_node_attrs(graph, "color") == {1: "#00000080", 2: "#FFFFFF80", 3: "#D9D9D980"}


def test_colorize_rejects_bad_palettes():
    graph = add_nodes_from_table(create_graph(write_backups=False), [{"t": "a"}, {"t": "b"}, {"t": "c"}])

    with pytest.raises(InvalidPaletteError):
        colorize_node_attrs(graph, "t", "color", palette=["#ff0000", "#00ff00"])
    with pytest.raises(InvalidPaletteError):
        colorize_node_attrs(graph, "t", "color", palette=["red", "green", "blue"])


def test_set_node_attr_w_fcn_default_column(path5):
    graph = set_node_attr_w_fcn(path5, "get_degree_out")

    assert get_node_attrs(graph, "degree_out") == {1: 1, 2: 1, 3: 1, 4: 1, 5: 0}


# -------------------- Log --------------------


def test_versions_increase_by_one_over_long_chain():
    graph = create_graph(write_backups=False)
    graph = add_n_nodes(graph, 4)
    for step in range(10):
        graph = set_node_attrs(graph, "step", step)
        graph = select_nodes_by_id(graph, [1 + step % 4])
    graph = add_path(graph, n=3)
    graph = trav_both(select_last_nodes_created(graph))

    versions = [entry.version_id for entry in get_graph_log(graph)]
    assert len(versions) == 25
    assert versions == list(range(1, 26))
    last = get_graph_log(graph)[-1]
    assert (last.nodes, last.edges) == (7, 2)


def test_unknown_selection_mode_is_rejected(path5):
    with pytest.raises(InvalidAttributeError) as excinfo:
        select_nodes_by_id(path5, 1, mode="xor")

    assert str(excinfo.value).startswith("select_nodes_by_id:")
    with pytest.raises(InvalidAttributeError):
        select_edges_by_node_id(path5, 1, mode="both")


def test_colorize_alpha_is_a_hex_channel():
    graph = add_nodes_from_table(create_graph(write_backups=False), [{"t": "a"}])

    opaque = colorize_node_attrs(graph, "t", "color", palette=["#112233"], alpha=100)
    clear = colorize_node_attrs(graph, "t", "color", palette=["#112233"], alpha=0)

    assert get_node_attrs(opaque, "color") == {1: "#112233"}
    assert get_node_attrs(clear, "color") == {1: "#11223300"}
