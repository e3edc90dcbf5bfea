"""stepgraph package initialization.

Build graphs one step at a time: every function takes a graph value and
returns a new one, so calls chain naturally::

    graph = create_graph()
    graph = add_path(graph, n=5)
    graph = select_nodes_by_id(graph, 2)
    graph = trav_out(graph)
    graph = set_node_attrs_ws(graph, "color", "green")
"""

from .actions import (
    add_graph_action,
    delete_graph_actions,
    get_graph_actions,
    reorder_graph_actions,
    trigger_graph_actions,
)
from .api import (
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
    set_graph_directed,
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
from .analysis import (
    from_networkx,
    get_betweenness,
    get_closeness,
    get_cmty_greedy,
    get_degree_in,
    get_degree_out,
    get_degree_total,
    get_jaccard_similarity,
    get_reciprocity,
    get_shortest_path,
    to_networkx,
    transform_to_min_spanning_tree,
)
from .errors import (
    ActionEvaluationError,
    EmptySelectionError,
    InvalidAttributeError,
    InvalidGraphError,
    InvalidPaletteError,
    ReferentialIntegrityError,
    StepGraphError,
    UnknownFunctionError,
)
from .graph import GraphValue
from .persist import load_graph_backup

__version__ = "0.1.0"

__all__ = [name for name in dir() if not name.startswith("_")]
