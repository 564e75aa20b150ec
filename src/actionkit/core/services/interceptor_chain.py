"""
Interceptor chain.

Each controller gets one chain, built once at registration from its
capability sets and its own hooks. Composition order is: capabilities passed
at registration, then the controller's ``capabilities`` attribute (each in
list order, each capability's hooks in definition order), then the
controller's own hooks. The chain is then sorted by ``priority`` (lower runs
first); the sort is stable, so equal priorities keep composition order.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Sequence
from typing import Any

from actionkit.core.common.exceptions import ControllerRegistrationError
from actionkit.core.controllers.base import Controller, collect_hooks
from actionkit.core.controllers.capabilities import Capability
from actionkit.core.domain.interceptor import Interceptor, InterceptorStage
from actionkit.core.domain.request_context import ActionContext
from actionkit.core.domain.results import Result, is_continue

logger = logging.getLogger(__name__)


async def call_maybe_async(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call ``func`` and await the outcome when it is awaitable."""
    outcome = func(*args, **kwargs)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome


def _as_capability(entry: Any, controller_name: str) -> Capability:
    if isinstance(entry, type) and issubclass(entry, Capability):
        return entry()
    if isinstance(entry, Capability):
        return entry
    raise ControllerRegistrationError(
        f"{entry!r} listed on {controller_name} is not a Capability",
        controller_name=controller_name,
    )


class InterceptorChain:
    """Ordered interceptors of one controller."""

    def __init__(self, interceptors: Sequence[Interceptor]) -> None:
        self._interceptors = sorted(interceptors, key=lambda i: i.priority)

    @classmethod
    def compose(
        cls,
        controller: Controller,
        capabilities: Sequence[Any] = (),
    ) -> InterceptorChain:
        """Build the chain of ``controller``.

        Args:
            controller: The controller instance
            capabilities: Extra capability sets, placed before the
                controller's own ``capabilities``

        Raises:
            ControllerRegistrationError: If an entry is not a capability.
        """
        name = controller.controller_name
        interceptors: list[Interceptor] = []
        for entry in [*capabilities, *type(controller).capabilities]:
            capability = _as_capability(entry, name)
            for attr_name, spec in capability.hook_specs():
                interceptors.append(
                    Interceptor(
                        name=attr_name,
                        spec=spec,
                        func=getattr(capability, attr_name),
                        source=capability.capability_name,
                    )
                )
        for attr_name, spec in collect_hooks(type(controller)):
            interceptors.append(
                Interceptor(
                    name=attr_name,
                    spec=spec,
                    func=getattr(controller, attr_name),
                    source=name,
                )
            )
        return cls(interceptors)

    @property
    def interceptors(self) -> list[Interceptor]:
        return list(self._interceptors)

    def for_stage(self, stage: InterceptorStage, action_name: str) -> list[Interceptor]:
        return [
            i
            for i in self._interceptors
            if i.stage is stage and i.applies_to(action_name)
        ]

    async def run_before(self, ctx: ActionContext) -> tuple[Any, Interceptor | None]:
        """Run before-hooks until one returns something other than Continue.

        Returns:
            ``(value, interceptor)`` of the short-circuiting hook, or
            ``(None, None)`` when every hook let the chain progress.
        """
        for interceptor in self.for_stage(InterceptorStage.BEFORE, ctx.action_name):
            outcome = await call_maybe_async(interceptor.func, ctx)
            if not is_continue(outcome):
                logger.debug(
                    "%s short-circuited %s", interceptor.qualified_name, ctx.action_id
                )
                return outcome, interceptor
        return None, None

    async def run_after(
        self, ctx: ActionContext, resolve: Callable[[Any], Result]
    ) -> None:
        """Run after-hooks in order.

        A hook returning anything but Continue replaces ``ctx.result`` with the
        resolved value; later hooks see the replacement.
        """
        for interceptor in self.for_stage(InterceptorStage.AFTER, ctx.action_name):
            outcome = await call_maybe_async(interceptor.func, ctx)
            if not is_continue(outcome):
                ctx.result = resolve(outcome)
                logger.debug(
                    "%s replaced the result of %s with %s",
                    interceptor.qualified_name,
                    ctx.action_id,
                    ctx.result.name,
                )

    async def run_catch(
        self, ctx: ActionContext, exc: BaseException
    ) -> tuple[Any, Interceptor | None]:
        """Offer ``exc`` to the matching catch-hooks; the first non-Continue value wins."""
        for interceptor in self.for_stage(InterceptorStage.CATCH, ctx.action_name):
            if not interceptor.handles(exc):
                continue
            outcome = await call_maybe_async(interceptor.func, ctx, exc)
            if not is_continue(outcome):
                return outcome, interceptor
        return None, None

    async def run_finally(self, ctx: ActionContext) -> None:
        """Run every finally-hook; failures are logged and do not change the result."""
        for interceptor in self.for_stage(InterceptorStage.FINALLY, ctx.action_name):
            try:
                await call_maybe_async(interceptor.func, ctx)
            except Exception as e:
                logger.error(
                    "Finally interceptor %s failed for %s: %s",
                    interceptor.qualified_name,
                    ctx.action_id,
                    e,
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._interceptors)
