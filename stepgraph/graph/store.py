"""In-memory NetworkX based storage for the node and edge tables."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import networkx as nx

from .model import EdgeRecord, NodeRecord, clean_attributes


@dataclass
class GraphStore:
    """Lightweight wrapper around :class:`networkx.MultiDiGraph`.

    Nodes are keyed by their integer id and edges by their integer edge id,
    used as the multigraph key. Edges are always stored with their original
    ``from``/``to`` orientation; ``directed`` only changes how they are read.

    A store is mutated in place. Callers that need value semantics take a
    :meth:`clone` first and edit the copy.
    """

    directed: bool = True
    graph: nx.MultiDiGraph = field(default_factory=nx.MultiDiGraph)
    last_node: int = 0
    last_edge: int = 0
    _edge_index: Dict[int, Tuple[int, int]] = field(default_factory=dict, repr=False)

    # -------------------- Nodes --------------------

    def add_node(self, attributes: Mapping[str, Any] | None = None) -> int:
        """Add a node with ``attributes`` and return its new id."""

        self.last_node += 1
        node_id = self.last_node
        self.graph.add_node(node_id, **clean_attributes(attributes))
        return node_id

    def insert_node(self, node_id: int, attributes: Mapping[str, Any] | None = None) -> None:
        """Add a node under an explicit ``node_id``, keeping the id counter ahead of it."""

        self.graph.add_node(node_id, **clean_attributes(attributes))
        self.last_node = max(self.last_node, node_id)

    def has_node(self, node_id: Any) -> bool:
        return node_id in self.graph

    def get_node(self, node_id: int) -> Optional[NodeRecord]:
        """Retrieve a node and return it as a :class:`NodeRecord` if present."""

        if node_id not in self.graph:
            return None
        return NodeRecord(id=node_id, attributes=dict(self.graph.nodes[node_id]))

    def remove_node(self, node_id: int) -> List[int]:
        """Remove ``node_id`` and every incident edge; return the removed edge ids."""

        incident = sorted(
            {key for _, _, key in self.graph.in_edges(node_id, keys=True)}
            | {key for _, _, key in self.graph.out_edges(node_id, keys=True)}
        )
        for edge_id in incident:
            del self._edge_index[edge_id]
        self.graph.remove_node(node_id)
        return incident

    def set_node_attribute(self, node_id: int, name: str, value: Any) -> None:
        """Set ``name`` on ``node_id``; ``None`` clears the value."""

        data = self.graph.nodes[node_id]
        if value is None:
            data.pop(name, None)
        else:
            data[name] = value

    def nodes(self) -> Iterable[NodeRecord]:
        """Iterate over node records in creation order."""

        for node_id, data in self.graph.nodes(data=True):
            yield NodeRecord(id=node_id, attributes=dict(data))

    def node_ids(self) -> List[int]:
        return list(self.graph.nodes)

    def node_columns(self) -> List[str]:
        """Return the shared node attribute schema in first-seen order."""

        columns: Dict[str, None] = {}
        for _, data in self.graph.nodes(data=True):
            columns.update(dict.fromkeys(data))
        return list(columns)

    def node_table(self) -> List[Dict[str, Any]]:
        columns = self.node_columns()
        return [record.as_row(columns) for record in self.nodes()]

    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    # -------------------- Edges --------------------

    def add_edge(self, source: int, target: int, attributes: Mapping[str, Any] | None = None) -> int:
        """Add an edge ``source -> target`` and return its new id."""

        for endpoint in (source, target):
            if endpoint not in self.graph:
                raise KeyError(f"Node '{endpoint}' does not exist")
        self.last_edge += 1
        edge_id = self.last_edge
        self.graph.add_edge(source, target, key=edge_id, **clean_attributes(attributes))
        self._edge_index[edge_id] = (source, target)
        return edge_id

    def insert_edge(
        self, edge_id: int, source: int, target: int, attributes: Mapping[str, Any] | None = None
    ) -> None:
        """Add an edge under an explicit ``edge_id``, keeping the id counter ahead of it."""

        if edge_id in self._edge_index:
            raise KeyError(f"Edge '{edge_id}' already exists")
        self.graph.add_edge(source, target, key=edge_id, **clean_attributes(attributes))
        self._edge_index[edge_id] = (source, target)
        self.last_edge = max(self.last_edge, edge_id)

    def has_edge(self, edge_id: Any) -> bool:
        return edge_id in self._edge_index

    def get_edge(self, edge_id: int) -> Optional[EdgeRecord]:
        """Retrieve an edge and return it as an :class:`EdgeRecord` if present."""

        if edge_id not in self._edge_index:
            return None
        source, target = self._edge_index[edge_id]
        data = self.graph.edges[source, target, edge_id]
        return EdgeRecord(id=edge_id, source=source, target=target, attributes=dict(data))

    def remove_edge(self, edge_id: int) -> None:
        source, target = self._edge_index.pop(edge_id)
        self.graph.remove_edge(source, target, key=edge_id)

    def set_edge_attribute(self, edge_id: int, name: str, value: Any) -> None:
        """Set ``name`` on ``edge_id``; ``None`` clears the value."""

        source, target = self._edge_index[edge_id]
        data = self.graph.edges[source, target, edge_id]
        if value is None:
            data.pop(name, None)
        else:
            data[name] = value

    def edges(self) -> Iterable[EdgeRecord]:
        """Iterate over edge records in ascending edge id order."""

        for edge_id in sorted(self._edge_index):
            record = self.get_edge(edge_id)
            if record is not None:
                yield record

    def edge_ids(self) -> List[int]:
        return sorted(self._edge_index)

    def edge_columns(self) -> List[str]:
        """Return the shared edge attribute schema in first-seen order."""

        columns: Dict[str, None] = {}
        for record in self.edges():
            columns.update(dict.fromkeys(record.attributes))
        return list(columns)

    def edge_table(self) -> List[Dict[str, Any]]:
        columns = self.edge_columns()
        return [record.as_row(columns) for record in self.edges()]

    def edge_count(self) -> int:
        return len(self._edge_index)

    def out_edges(self, node_id: int) -> List[EdgeRecord]:
        """Edges whose ``from`` endpoint is ``node_id``, ordered by edge id."""

        if node_id not in self.graph:
            return []
        keys = sorted(key for _, _, key in self.graph.out_edges(node_id, keys=True))
        return [self.get_edge(key) for key in keys]

    def in_edges(self, node_id: int) -> List[EdgeRecord]:
        """Edges whose ``to`` endpoint is ``node_id``, ordered by edge id."""

        if node_id not in self.graph:
            return []
        keys = sorted(key for _, _, key in self.graph.in_edges(node_id, keys=True))
        return [self.get_edge(key) for key in keys]

    def successors(self, node_id: int) -> List[int]:
        if node_id not in self.graph:
            return []
        return sorted(set(self.graph.successors(node_id)))

    def predecessors(self, node_id: int) -> List[int]:
        if node_id not in self.graph:
            return []
        return sorted(set(self.graph.predecessors(node_id)))

    # -------------------- Cloning --------------------

    def clone(self) -> "GraphStore":
        """Return an independent copy of the store."""

        return GraphStore(
            directed=self.directed,
            graph=self.graph.copy(),
            last_node=self.last_node,
            last_edge=self.last_edge,
            _edge_index=dict(self._edge_index),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphStore):
            return NotImplemented
        return (
            self.directed == other.directed
            and self.last_node == other.last_node
            and self.last_edge == other.last_edge
            and list(self.nodes()) == list(other.nodes())
            and list(self.edges()) == list(other.edges())
        )
