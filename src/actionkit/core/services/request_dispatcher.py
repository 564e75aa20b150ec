"""
Request dispatching.

Ties routing, invocation and rendering together for one request:
route the request line to an action, invoke it with a fresh context, and
render the result with that context's render arguments.
"""

from __future__ import annotations

import logging

from actionkit.core.common.exceptions import ActionKitError, ActionNotFoundError
from actionkit.core.controllers.registry import ControllerRegistry
from actionkit.core.domain.render_args import (
    CHARSET_KEY,
    RESPONSE_HEADERS_KEY,
    RenderArgs,
)
from actionkit.core.domain.request_context import ActionContext, ActionRequest
from actionkit.core.domain.response_envelope import ResponseEnvelope
from actionkit.core.domain.results import Error, NotFound, Result
from actionkit.core.interfaces.response_renderer_interface import IResponseRenderer
from actionkit.core.interfaces.routing_interface import IRouteResolver, RouteMatch
from actionkit.core.services.action_invoker import ActionInvoker

logger = logging.getLogger(__name__)


class RequestDispatcher:
    """Routes, invokes and renders a single request."""

    def __init__(
        self,
        routes: IRouteResolver,
        registry: ControllerRegistry,
        invoker: ActionInvoker,
        renderer: IResponseRenderer,
    ) -> None:
        self._routes = routes
        self._registry = registry
        self._invoker = invoker
        self._renderer = renderer

    async def dispatch(self, request: ActionRequest) -> ResponseEnvelope:
        match = self._match(request)
        if match is None:
            return self._unrouted(request)

        request.path_params = dict(match.path_params)
        try:
            registration, action_name = self._registry.resolve(match.action_id)
        except ActionNotFoundError as e:
            # A route points at an action nobody registered
            logger.error("Route %s %s is broken: %s", request.method, request.path, e)
            return self.render(Error(500))

        ctx = ActionContext(
            request=request,
            controller=registration.controller,
            action_name=action_name,
        )
        ctx.render_args[CHARSET_KEY] = self._renderer.charset
        result = await self._invoker.invoke_with_context(registration.chain, ctx)
        return self.render(result, ctx.render_args)

    def _match(self, request: ActionRequest) -> RouteMatch | None:
        match = self._routes.match(request.method, request.path)
        if match is None and request.method == "HEAD":
            match = self._routes.match("GET", request.path)
        return match

    def _unrouted(self, request: ActionRequest) -> ResponseEnvelope:
        allowed = self._routes.allowed_methods(request.path)
        if not allowed:
            return self.render(NotFound.route(request.method, request.path))

        render_args = RenderArgs()
        render_args[RESPONSE_HEADERS_KEY] = {"Allow": ", ".join(sorted(allowed))}
        return self.render(
            Error(405, f"Method {request.method} not allowed for {request.path}"),
            render_args,
        )

    def render(
        self, result: Result, render_args: RenderArgs | None = None
    ) -> ResponseEnvelope:
        """Render ``result``, falling back to a bare 500 when it cannot be encoded."""
        try:
            return self._renderer.render(result, render_args)
        except (ActionKitError, TypeError, ValueError) as e:
            # Results that cannot be encoded (e.g. non-JSON-serializable content)
            logger.error("Failed to render %s: %s", result.name, e, exc_info=True)
            return self._renderer.render(Error(500))
