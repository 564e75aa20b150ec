"""
Action invocation.

Runs one action of a registered controller through the controller's
interceptor chain and returns the single result value that becomes the
response:

1. before-interceptors run in chain order; the first one that returns
   anything but Continue short-circuits the invocation and its value is the
   result (the action body and after-interceptors are skipped);
2. the action's arguments are bound and the action body runs;
3. after-interceptors may replace the result;
4. exceptions from any of the above are offered to catch-interceptors and
   otherwise mapped to ``BadRequest``/``Error``;
5. finally-interceptors always run.
"""

from __future__ import annotations

import logging
from typing import Any

from actionkit.core.common.exceptions import (
    ActionKitError,
    ArgumentBindingError,
    ResultResolutionError,
)
from actionkit.core.controllers.registry import ControllerRegistry
from actionkit.core.domain.request_context import ActionContext, ActionRequest
from actionkit.core.domain.results import BadRequest, Error, Result
from actionkit.core.interfaces.action_invoker_interface import IActionInvoker
from actionkit.core.services.argument_binder import ArgumentBinder
from actionkit.core.services.interceptor_chain import InterceptorChain, call_maybe_async
from actionkit.core.services.result_resolver import ResultResolver

logger = logging.getLogger(__name__)


class ActionInvoker(IActionInvoker):
    """Default action invoker."""

    def __init__(
        self,
        registry: ControllerRegistry,
        resolver: ResultResolver,
        binder: ArgumentBinder | None = None,
        *,
        expose_error_details: bool = False,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._binder = binder or ArgumentBinder()
        self._expose_error_details = expose_error_details

    async def invoke(
        self,
        action_id: str,
        request: ActionRequest,
        arguments: dict[str, Any] | None = None,
    ) -> Result:
        registration, action_name = self._registry.resolve(action_id)
        ctx = ActionContext(
            request=request,
            controller=registration.controller,
            action_name=action_name,
        )
        return await self.invoke_with_context(registration.chain, ctx, arguments)

    async def invoke_with_context(
        self,
        chain: InterceptorChain,
        ctx: ActionContext,
        arguments: dict[str, Any] | None = None,
    ) -> Result:
        """Invoke ``ctx.action_name`` with an already prepared context.

        The context (and its render arguments) belongs to this invocation
        only; it is returned filled in through ``ctx.result``.
        """
        try:
            try:
                await self._run(chain, ctx, arguments)
            except Exception as exc:
                ctx.exception = exc
                ctx.result = await self._handle_failure(chain, ctx, exc)
        finally:
            await chain.run_finally(ctx)

        if ctx.result is None:
            raise ResultResolutionError(
                f"{ctx.action_id} finished without a result", action_id=ctx.action_id
            )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "%s -> %s%s",
                ctx.action_id,
                ctx.result.name,
                f" (short-circuited by {ctx.short_circuited_by})"
                if ctx.short_circuited_by
                else "",
            )
        return ctx.result

    async def _run(
        self,
        chain: InterceptorChain,
        ctx: ActionContext,
        arguments: dict[str, Any] | None,
    ) -> None:
        value, interceptor = await chain.run_before(ctx)
        if interceptor is not None:
            ctx.short_circuited_by = interceptor.qualified_name
            ctx.result = self._resolver.resolve(value)
            return

        func = ctx.controller.get_action(ctx.action_name)
        ctx.arguments = self._binder.bind(func, ctx.request, ctx, arguments)
        value = await call_maybe_async(func, **ctx.arguments)
        ctx.result = self._resolver.resolve(value)

        await chain.run_after(ctx, self._resolver.resolve)

    async def _handle_failure(
        self, chain: InterceptorChain, ctx: ActionContext, exc: Exception
    ) -> Result:
        try:
            value, interceptor = await chain.run_catch(ctx, exc)
            if interceptor is not None:
                logger.info(
                    "%s raised %s, handled by %s",
                    ctx.action_id,
                    type(exc).__name__,
                    interceptor.qualified_name,
                )
                return self._resolver.resolve(value)
        except Exception as catch_error:
            logger.error(
                "Catch interceptor failed while handling %s for %s: %s",
                type(exc).__name__,
                ctx.action_id,
                catch_error,
                exc_info=True,
            )
            return Error(500, self._detail(catch_error))

        return self._result_for(ctx, exc)

    def _result_for(self, ctx: ActionContext, exc: Exception) -> Result:
        if isinstance(exc, ArgumentBindingError):
            logger.warning("Bad request for %s: %s", ctx.action_id, exc.message)
            return BadRequest(exc.message)

        if isinstance(exc, ActionKitError):
            status_code = int(getattr(exc, "status_code", 500))
            if not 400 <= status_code <= 599:
                status_code = 500
            if status_code < 500:
                logger.warning("Domain error in %s: %s", ctx.action_id, exc)
                return Error(status_code, exc.message)
            logger.error("Domain error in %s: %s", ctx.action_id, exc, exc_info=True)
            return Error(status_code, self._detail(exc))

        logger.error(
            "Unhandled exception in %s: %s", ctx.action_id, exc, exc_info=exc
        )
        return Error(500, self._detail(exc))

    def _detail(self, exc: BaseException) -> str | None:
        if not self._expose_error_details:
            return None
        return f"{type(exc).__name__}: {exc}"
