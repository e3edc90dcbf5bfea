"""Graph subpackage containing the table store, selections and traversals."""

from .model import Direction, EdgeRecord, NodeRecord, Selection, SelectionMode, Target
from .query import TraversalService
from .store import GraphStore
from .value import GraphAction, GraphValue, graph_object_valid

__all__ = [
    "Direction",
    "EdgeRecord",
    "GraphAction",
    "GraphStore",
    "GraphValue",
    "NodeRecord",
    "Selection",
    "SelectionMode",
    "Target",
    "TraversalService",
    "graph_object_valid",
]
