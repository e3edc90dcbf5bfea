"""Graph metrics and transformations delegated to networkx."""

from .metrics import (
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

__all__ = [
    "from_networkx",
    "get_betweenness",
    "get_closeness",
    "get_cmty_greedy",
    "get_degree_in",
    "get_degree_out",
    "get_degree_total",
    "get_jaccard_similarity",
    "get_reciprocity",
    "get_shortest_path",
    "to_networkx",
    "transform_to_min_spanning_tree",
]
