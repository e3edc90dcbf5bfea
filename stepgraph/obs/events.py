"""Append-only audit log of graph mutations."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

from stepgraph.ids import utc_now


@dataclass(frozen=True)
class LogEntry:
    """One row of the action log."""

    version_id: int
    function_used: str
    time_modified: str
    duration: float
    nodes: int
    edges: int


@dataclass(frozen=True)
class ActionLog:
    """Immutable, append-only sequence of :class:`LogEntry` rows.

    Every method returns a new log; the receiver is never changed.
    """

    entries: Tuple[LogEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self.entries)

    @property
    def last_version(self) -> int:
        return self.entries[-1].version_id if self.entries else 0

    def append(
        self,
        *,
        function_used: str,
        nodes: int,
        edges: int,
        duration: float = 0.0,
        time_modified: str | None = None,
    ) -> "ActionLog":
        """Return a log with one more entry numbered ``last_version + 1``."""

        entry = LogEntry(
            version_id=self.last_version + 1,
            function_used=function_used,
            time_modified=time_modified or utc_now(),
            duration=duration,
            nodes=nodes,
            edges=edges,
        )
        return ActionLog(entries=self.entries + (entry,))

    def collapse(
        self,
        since: int,
        *,
        function_used: str,
        nodes: int,
        edges: int,
        duration: float = 0.0,
        time_modified: str | None = None,
    ) -> "ActionLog":
        """Replace every entry after the first ``since`` rows with a single entry.

        With no entries past ``since`` this is a plain :meth:`append`.
        """

        if since < 0 or since > len(self.entries):
            raise ValueError(f"Cannot collapse log of length {len(self.entries)} at {since}")
        head = ActionLog(entries=self.entries[:since])
        return head.append(
            function_used=function_used,
            nodes=nodes,
            edges=edges,
            duration=duration,
            time_modified=time_modified,
        )

    def history(self) -> Iterable[LogEntry]:
        """Return the chronological log history."""

        return tuple(self.entries)
