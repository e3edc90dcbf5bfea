"""Exception hierarchy raised by stepgraph operations."""
from __future__ import annotations


class StepGraphError(Exception):
    """Base class for every error raised by the package."""

    def __init__(self, fcn_name: str, reason: str) -> None:
        self.fcn_name = fcn_name
        self.reason = reason
        super().__init__(f"{fcn_name}: {reason}")

    def __str__(self) -> str:
        return f"{self.fcn_name}: {self.reason}"


class InvalidGraphError(StepGraphError, TypeError):
    """The value passed as ``graph`` is missing or malformed."""


class ReferentialIntegrityError(StepGraphError, ValueError):
    """An edge or lookup refers to a node or edge that does not exist."""


class EmptySelectionError(StepGraphError, ValueError):
    """A ``_ws`` operation ran without the selection it requires."""


class InvalidAttributeError(StepGraphError, ValueError):
    """An attribute name or value failed validation."""


class InvalidPaletteError(InvalidAttributeError):
    """A colour palette is malformed or too short."""


class UnknownFunctionError(StepGraphError, KeyError):
    """A graph action or attribute function name is not registered."""


class ActionEvaluationError(StepGraphError, RuntimeError):
    """A registered graph action failed while being evaluated."""

    def __init__(self, fcn_name: str, *, index: int, name: str | None, cause: BaseException) -> None:
        self.index = index
        self.name = name
        self.cause = cause
        label = f" (`{name}`)" if name else ""
        reason = (
            "The series of graph actions was not applied to the graph because of an "
            f"error at action index {index}{label}: {cause}"
        )
        super().__init__(fcn_name, reason)


__all__ = [
    "ActionEvaluationError",
    "EmptySelectionError",
    "InvalidAttributeError",
    "InvalidGraphError",
    "InvalidPaletteError",
    "ReferentialIntegrityError",
    "StepGraphError",
    "UnknownFunctionError",
]
