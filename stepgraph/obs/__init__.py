"""Observability primitives: the action log."""

from .events import ActionLog, LogEntry

__all__ = ["ActionLog", "LogEntry"]
