"""Persistence utilities for stepgraph."""

from .snapshot import SnapshotWriter, load_graph_backup

__all__ = ["SnapshotWriter", "load_graph_backup"]
