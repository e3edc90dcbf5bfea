"""Function registries used to evaluate deferred graph actions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from stepgraph.errors import UnknownFunctionError


class GraphFunction(Protocol):
    """Protocol for a registered function taking the graph as first argument."""

    def __call__(self, graph: Any, **params: Any) -> Any:  # pragma: no cover - interface
        ...


@dataclass
class ActionRouter:
    """Dispatch function names to their registered callables."""

    kind: str = "graph function"
    registry: Dict[str, GraphFunction] = field(default_factory=dict)

    def register(self, name: str, handler: GraphFunction) -> None:
        """Register ``handler`` under ``name``."""

        self.registry[name] = handler

    def registered(self, name: Optional[str] = None) -> Callable[[GraphFunction], GraphFunction]:
        """Decorator form of :meth:`register`, defaulting to the function's name."""

        def _decorator(handler: GraphFunction) -> GraphFunction:
            self.register(name or handler.__name__, handler)
            return handler

        return _decorator

    def __contains__(self, name: object) -> bool:
        return name in self.registry

    def resolve(self, name: str, *, caller: str = "dispatch") -> GraphFunction:
        if name not in self.registry:
            raise UnknownFunctionError(caller, f"Unknown {self.kind}: {name}")
        return self.registry[name]

    def dispatch(self, name: str, graph: Any, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute the handler associated with ``name`` against ``graph``."""

        return self.resolve(name)(graph, **dict(params or {}))


# Functions usable as graph actions: ``graph -> graph``.
GRAPH_FUNCTIONS = ActionRouter(kind="graph function")

# Functions producing per-node values: ``graph -> {node_id: value}``.
NODE_ATTR_FUNCTIONS = ActionRouter(kind="node attribute function")

__all__ = ["ActionRouter", "GRAPH_FUNCTIONS", "GraphFunction", "NODE_ATTR_FUNCTIONS"]
