"""
Route table.

A deliberately small route table used to dispatch requests to actions and
to reverse action references into URLs. Paths use Starlette's template
syntax (``/articles/{id:int}``) and are compiled with Starlette's own path
compiler, so matching and URL building agree with the transport layer.

Routes are matched in insertion order. The method ``*`` matches any method.
Arguments of a reversed reference that are not path parameters are appended
as a query string.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from starlette.convertors import Convertor
from starlette.routing import compile_path, replace_params

from actionkit.core.common.exceptions import ConfigurationError, ReverseRoutingError
from actionkit.core.domain.action_reference import ActionReference
from actionkit.core.interfaces.routing_interface import (
    IReverseRouter,
    IRouteResolver,
    RouteMatch,
)

logger = logging.getLogger(__name__)

ANY_METHOD = "*"


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    action_id: str
    regex: re.Pattern[str]
    path_format: str
    convertors: dict[str, Convertor[Any]]

    def accepts(self, method: str) -> bool:
        return self.method == ANY_METHOD or self.method == method

    def match_path(self, path: str) -> dict[str, Any] | None:
        found = self.regex.match(path)
        if found is None:
            return None
        return {
            key: self.convertors[key].convert(value)
            for key, value in found.groupdict().items()
        }


class RouteTable(IRouteResolver, IReverseRouter):
    """Ordered list of ``method path -> Controller.action`` routes."""

    def __init__(self, base_url: str = "") -> None:
        self._routes: list[Route] = []
        self._base_url = base_url.rstrip("/")

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    def add(self, method: str, path: str, action_id: str) -> RouteTable:
        """Append a route.

        Raises:
            ConfigurationError: If the path or the action identifier is malformed.
        """
        if not path.startswith("/"):
            raise ConfigurationError(f"Route path must start with '/': {path!r}")
        try:
            ActionReference.parse(action_id)
            regex, path_format, convertors = compile_path(path)
        except (ValueError, AssertionError) as e:
            raise ConfigurationError(
                f"Invalid route {method} {path} -> {action_id}: {e}"
            ) from e

        route = Route(
            method=method.upper(),
            path=path,
            action_id=action_id,
            regex=regex,
            path_format=path_format,
            convertors=convertors,
        )
        self._routes.append(route)
        logger.debug("Route added: %s %s -> %s", route.method, path, action_id)
        return self

    def match(self, method: str, path: str) -> RouteMatch | None:
        method = method.upper()
        for route in self._routes:
            if not route.accepts(method):
                continue
            params = route.match_path(path)
            if params is not None:
                return RouteMatch(action_id=route.action_id, path_params=params)
        return None

    def allowed_methods(self, path: str) -> set[str]:
        return {
            route.method
            for route in self._routes
            if route.match_path(path) is not None
        }

    def reverse(self, reference: ActionReference) -> str:
        arguments = dict(reference.arguments)
        candidates = [r for r in self._routes if r.action_id == reference.action_id]
        if not candidates:
            raise ReverseRoutingError(
                f"No route leads to {reference.action_id}",
                action_id=reference.action_id,
            )

        # Prefer GET routes, then routes whose parameters are all supplied
        candidates.sort(key=lambda r: r.method not in ("GET", ANY_METHOD))
        for route in candidates:
            if not set(route.convertors).issubset(arguments):
                continue
            try:
                path, remaining = replace_params(
                    route.path_format, route.convertors, dict(arguments)
                )
            except (AssertionError, TypeError, ValueError) as e:
                # Starlette convertors assert on values they cannot encode
                raise ReverseRoutingError(
                    f"Cannot build {route.path} for {reference.action_id}: "
                    f"{e or 'invalid path argument'}",
                    action_id=reference.action_id,
                    details={"arguments": {k: repr(v) for k, v in arguments.items()}},
                ) from e
            url = self._base_url + path
            if remaining:
                url += "?" + urlencode(
                    {k: _query_value(v) for k, v in remaining.items()}, doseq=True
                )
            return url

        missing = sorted(set(candidates[0].convertors) - set(arguments))
        raise ReverseRoutingError(
            f"Missing arguments {missing} to reach {reference.action_id}",
            action_id=reference.action_id,
            details={"missing": missing},
        )


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value
