"""Graph identifiers and the timestamps written to logs and backup names."""
from __future__ import annotations

import datetime as _dt
import uuid


def new_id(prefix: str) -> str:
    """Return ``<prefix>_<32 hex chars>``, random and unique per call."""

    return "_".join((prefix, uuid.uuid4().hex))


def _now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def utc_now() -> str:
    """Timezone-aware ISO 8601 time, as stored in ``time_modified``."""

    return _now().isoformat()


def compact_stamp() -> str:
    """Filename-safe ``YYYYmmddTHHMMSSffffff`` stamp used in backup names."""

    return _now().strftime("%Y%m%dT%H%M%S%f")
