"""Settings for stepgraph, read from the environment.

Two variables control backups:

``STEPGRAPH_WRITE_BACKUPS``
    ``1``/``true``/``yes``/``on`` turns on a pickle snapshot after every
    outermost graph mutation.
``STEPGRAPH_BACKUP_DIR``
    Directory receiving the snapshots (``backups`` when unset).

A ``.env`` file next to the package is merged into ``os.environ`` on first
use; variables already set in the process take precedence. The values are
read once per graph, by :func:`load_settings` inside ``create_graph``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_BACKUP_DIR = "backups"


@lru_cache(maxsize=1)
def _load_environment() -> None:
    """Merge ``.env`` into the process environment, at most once."""

    dotenv_file = Path(__file__).resolve().parents[1] / ".env"
    if dotenv_file.exists():
        load_dotenv(dotenv_file, override=False)
    else:
        # Let python-dotenv search upwards from the working directory.
        load_dotenv(override=False)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Look up ``key`` after the ``.env`` file has been merged in."""

    _load_environment()
    value = os.environ.get(key)
    return default if value is None else value


def get_bool_env(key: str, default: bool = False) -> bool:
    """Interpret ``key`` as a boolean flag."""

    value = get_env(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class GraphSettings:
    """Per-graph behaviour switches stored on every graph value."""

    write_backups: bool = False
    backup_dir: str = DEFAULT_BACKUP_DIR


def load_settings(
    *,
    write_backups: Optional[bool] = None,
    backup_dir: Optional[str | Path] = None,
) -> GraphSettings:
    """Build :class:`GraphSettings`, falling back to ``STEPGRAPH_*`` variables."""

    if write_backups is None:
        write_backups = get_bool_env("STEPGRAPH_WRITE_BACKUPS", default=False)
    if backup_dir is None:
        backup_dir = get_env("STEPGRAPH_BACKUP_DIR", DEFAULT_BACKUP_DIR)
    return GraphSettings(write_backups=bool(write_backups), backup_dir=str(backup_dir))


__all__ = ["GraphSettings", "get_bool_env", "get_env", "load_settings"]
