"""Record types shared by the graph store, selections and traversals."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Tuple

from stepgraph.errors import InvalidAttributeError

RESERVED_NODE_COLUMNS = ("id",)
RESERVED_EDGE_COLUMNS = ("id", "from", "to")


class SelectionMode(str, Enum):
    """How a new set of ids is combined with the current selection."""

    REPLACE = "replace"
    UNION = "union"
    INTERSECT = "intersect"
    DIFFERENCE = "difference"


class Direction(str, Enum):
    """Edge direction followed by a traversal."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"
    BOTH = "both"
    REVERSE = "reverse"


class Target(str, Enum):
    """Kind of selection produced by a traversal."""

    NODE = "node"
    EDGE = "edge"


@dataclass(frozen=True)
class NodeRecord:
    """One row of the node table."""

    id: int
    attributes: Dict[str, Any] = field(default_factory=dict)

    def as_row(self, columns: Iterable[str]) -> Dict[str, Any]:
        row: Dict[str, Any] = {"id": self.id}
        for column in columns:
            row[column] = self.attributes.get(column)
        return row


@dataclass(frozen=True)
class EdgeRecord:
    """One row of the edge table."""

    id: int
    source: int
    target: int
    attributes: Dict[str, Any] = field(default_factory=dict)

    def as_row(self, columns: Iterable[str]) -> Dict[str, Any]:
        row: Dict[str, Any] = {"id": self.id, "from": self.source, "to": self.target}
        for column in columns:
            row[column] = self.attributes.get(column)
        return row


@dataclass(frozen=True)
class Selection:
    """Currently selected node ids and edge ids, both kept sorted."""

    nodes: Tuple[int, ...] = ()
    edges: Tuple[int, ...] = ()

    @classmethod
    def of_nodes(cls, nodes: Iterable[int]) -> "Selection":
        return cls(nodes=tuple(sorted(set(nodes))))

    @classmethod
    def of_edges(cls, edges: Iterable[int]) -> "Selection":
        return cls(edges=tuple(sorted(set(edges))))

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def has_nodes(self) -> bool:
        return bool(self.nodes)

    def has_edges(self) -> bool:
        return bool(self.edges)


def coerce_mode(mode: str | SelectionMode, fcn_name: str = "select_nodes") -> SelectionMode:
    """Return ``mode`` as a :class:`SelectionMode`.

    Unknown modes raise :class:`InvalidAttributeError` naming ``fcn_name``.
    """

    if isinstance(mode, SelectionMode):
        return mode
    try:
        return SelectionMode(mode)
    except ValueError:
        choices = ", ".join(f"'{item.value}'" for item in SelectionMode)
        raise InvalidAttributeError(fcn_name, f"'mode' must be one of {choices}, not {mode!r}") from None


def clean_attributes(attributes: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Copy ``attributes`` dropping ``None`` values, the table null marker."""

    return {str(key): value for key, value in dict(attributes or {}).items() if value is not None}


def reserved_key(attributes: Mapping[str, Any] | None, reserved: Tuple[str, ...]) -> str | None:
    """Return the first key of ``attributes`` that collides with ``reserved``."""

    for key in attributes or {}:
        if key in reserved:
            return key
    return None


__all__ = [
    "Direction",
    "EdgeRecord",
    "NodeRecord",
    "RESERVED_EDGE_COLUMNS",
    "RESERVED_NODE_COLUMNS",
    "Selection",
    "SelectionMode",
    "Target",
    "clean_attributes",
    "coerce_mode",
    "reserved_key",
]
