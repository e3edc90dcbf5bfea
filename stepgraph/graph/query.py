"""Traversal helpers deriving new selections from the current one."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set

from .model import Direction, EdgeRecord, Selection, Target
from .store import GraphStore

RowPredicate = Callable[[Mapping[str, Any]], bool]


@dataclass
class TraversalService:
    """Follow edges of ``store`` outward, inward or both ways from a selection.

    Every traversal returns a new :class:`Selection`, or ``None`` when nothing
    was reached. ``None`` is the "no result" sentinel; it is not an error.
    """

    store: GraphStore

    def traverse(
        self,
        selection: Selection,
        direction: str | Direction,
        *,
        target: str | Target = Target.NODE,
        where: Optional[RowPredicate] = None,
    ) -> Optional[Selection]:
        """Dispatch to the traversal matching the selection kind and ``target``.

        ``where`` filters the kept items: destination node rows for node
        results and edge rows for edge results.
        """

        direction = Direction(direction)
        target = Target(target)
        if selection.has_edges():
            if target is Target.NODE:
                return self.edges_to_nodes(selection.edges, direction, where=where)
            return self.edges_to_edges(selection.edges, direction, where=where)
        if target is Target.NODE:
            return self.nodes_to_nodes(selection.nodes, direction, where=where)
        return self.nodes_to_edges(selection.nodes, direction, where=where)

    # ------------------------------------------------------------------
    # Traversals
    # ------------------------------------------------------------------

    def nodes_to_nodes(
        self,
        nodes: Iterable[int],
        direction: Direction,
        *,
        where: Optional[RowPredicate] = None,
    ) -> Optional[Selection]:
        reached: Set[int] = set()
        for node_id in nodes:
            for edge in self._edges_for(node_id, direction):
                reached.add(edge.target if edge.source == node_id else edge.source)
        if where is not None:
            reached = {node for node in reached if where(self._node_row(node))}
        return Selection.of_nodes(reached) if reached else None

    def nodes_to_edges(
        self,
        nodes: Iterable[int],
        direction: Direction,
        *,
        where: Optional[RowPredicate] = None,
    ) -> Optional[Selection]:
        reached: Set[int] = set()
        for node_id in nodes:
            for edge in self._edges_for(node_id, direction):
                if where is None or where(self._edge_row(edge)):
                    reached.add(edge.id)
        return Selection.of_edges(reached) if reached else None

    def edges_to_nodes(
        self,
        edges: Iterable[int],
        direction: Direction,
        *,
        where: Optional[RowPredicate] = None,
    ) -> Optional[Selection]:
        """Move from selected edges to their ``to`` (outgoing) or ``from`` (incoming) nodes."""

        reached: Set[int] = set()
        for edge_id in edges:
            edge = self.store.get_edge(edge_id)
            if edge is None:
                continue
            if direction in (Direction.OUTGOING, Direction.BOTH) or not self.store.directed:
                reached.add(edge.target)
            if direction in (Direction.INCOMING, Direction.BOTH) or not self.store.directed:
                reached.add(edge.source)
        if where is not None:
            reached = {node for node in reached if where(self._node_row(node))}
        return Selection.of_nodes(reached) if reached else None

    def edges_to_edges(
        self,
        edges: Iterable[int],
        direction: Direction,
        *,
        where: Optional[RowPredicate] = None,
    ) -> Optional[Selection]:
        """Select edges running opposite to the selected ones.

        Only :attr:`Direction.REVERSE` is meaningful here; the selected edges
        themselves are never part of the result.
        """

        if direction is not Direction.REVERSE:
            raise ValueError(f"Edge-to-edge traversal requires '{Direction.REVERSE.value}'")
        chosen = set(edges)
        reached: Set[int] = set()
        for edge_id in chosen:
            edge = self.store.get_edge(edge_id)
            if edge is None:
                continue
            for candidate in self.store.out_edges(edge.target):
                if candidate.target != edge.source or candidate.id in chosen:
                    continue
                if where is None or where(self._edge_row(candidate)):
                    reached.add(candidate.id)
        return Selection.of_edges(reached) if reached else None

    # ------------------------------------------------------------------
    # Neighbourhood lookups
    # ------------------------------------------------------------------

    def neighbors(self, nodes: Iterable[int]) -> Optional[List[int]]:
        """Union of predecessors and successors of ``nodes``, sorted; ``None`` if empty."""

        found: Set[int] = set()
        for node_id in nodes:
            found.update(self.store.predecessors(node_id))
            found.update(self.store.successors(node_id))
        return sorted(found) or None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _edges_for(self, node_id: int, direction: Direction) -> List[EdgeRecord]:
        if direction is Direction.REVERSE:
            raise ValueError(f"'{Direction.REVERSE.value}' only applies to edge selections")
        outgoing = direction in (Direction.OUTGOING, Direction.BOTH) or not self.store.directed
        incoming = direction in (Direction.INCOMING, Direction.BOTH) or not self.store.directed
        found = {}
        if outgoing:
            found.update((edge.id, edge) for edge in self.store.out_edges(node_id))
        if incoming:
            found.update((edge.id, edge) for edge in self.store.in_edges(node_id))
        return [found[key] for key in sorted(found)]

    def _node_row(self, node_id: int) -> dict:
        return self.store.get_node(node_id).as_row(self.store.node_columns())

    def _edge_row(self, edge: EdgeRecord) -> dict:
        return edge.as_row(self.store.edge_columns())
