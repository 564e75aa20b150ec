from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from actionkit.core.domain.action_reference import ActionReference
from actionkit.core.interfaces.model_bases import InternalDTO


@dataclass(frozen=True)
class RouteMatch(InternalDTO):
    """Outcome of resolving a request line against the route table."""

    action_id: str
    path_params: dict[str, Any] = field(default_factory=dict)


class IReverseRouter(ABC):
    """Turns by-name action references into URLs."""

    @abstractmethod
    def reverse(self, reference: ActionReference) -> str:
        """Return the URL that reaches ``reference``.

        Raises:
            ReverseRoutingError: If no route leads to the action.
        """


class IRouteResolver(ABC):
    """Resolves an incoming request line to an action identifier."""

    @abstractmethod
    def match(self, method: str, path: str) -> RouteMatch | None:
        """Return the matching route, or None when no route matches the path."""

    @abstractmethod
    def allowed_methods(self, path: str) -> set[str]:
        """Return the methods that have a route for ``path``."""
