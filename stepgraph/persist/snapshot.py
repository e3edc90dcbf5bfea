"""Graph backup snapshots written after each mutation."""
from __future__ import annotations

import logging
import pickle
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stepgraph.graph.value import GraphValue
from stepgraph.ids import compact_stamp

LOGGER = logging.getLogger(__name__)


@dataclass
class SnapshotWriter:
    """Persist complete graph values under ``directory``.

    Files are named ``<graph_id>_v<version>_<timestamp>.pkl`` and contain the
    pickled :class:`GraphValue`: tables, selection, graph actions and log.
    """

    directory: Path

    def path_for(self, graph: GraphValue) -> Path:
        return Path(self.directory) / f"{graph.graph_id}_v{graph.version:05d}_{compact_stamp()}.pkl"

    def save(self, graph: GraphValue) -> Path:
        """Write ``graph`` and return the file path; errors propagate.

        The graph is serialised before the file is opened, so a value that
        cannot be pickled leaves nothing on disk.
        """

        payload = pickle.dumps(graph, protocol=pickle.HIGHEST_PROTOCOL)
        path = self.path_for(graph)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        return path

    def snapshot(self, graph: GraphValue) -> Optional[Path]:
        """Best-effort :meth:`save`; a failed write is logged and skipped."""

        try:
            path = self.save(graph)
        except (OSError, pickle.PicklingError, AttributeError, TypeError) as exc:
            LOGGER.warning("Skipping backup of graph %s: %s", graph.graph_id, exc)
            return None
        LOGGER.debug("Wrote backup of graph %s to %s", graph.graph_id, path)
        return path


def load_graph_backup(path: str | Path) -> GraphValue:
    """Read a graph value written by :class:`SnapshotWriter` back verbatim."""

    with Path(path).open("rb") as handle:
        graph = pickle.load(handle)
    if not isinstance(graph, GraphValue):
        raise TypeError(f"{path} does not contain a graph value")
    return graph
