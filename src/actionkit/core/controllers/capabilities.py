"""
Capability sets.

A capability is a reusable group of interceptors that controllers list
explicitly in their ``capabilities`` attribute (or that the registry adds at
registration time). The order of that list is the composition order of the
interceptor chain.

Hooks on a capability use the same decorators as controller hooks and take
``(self, ctx)``; catch hooks take ``(self, ctx, exc)``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from actionkit.core.controllers.base import after, before, collect_hooks
from actionkit.core.domain.action_reference import ActionReference, ActionTarget
from actionkit.core.domain.interceptor import HookSpec
from actionkit.core.domain.render_args import CHARSET_KEY, ETAG_KEY
from actionkit.core.domain.request_context import ActionContext
from actionkit.core.domain.results import (
    CONTINUE,
    ActionRedirect,
    Forbidden,
    NotModified,
    Result,
)
from actionkit.core.services.response_renderer import (
    CONTENT_RESULTS,
    ResponseRenderer,
    strong_etag,
)


class Capability:
    """Base class for capability sets."""

    name: str | None = None

    @property
    def capability_name(self) -> str:
        return self.name or type(self).__name__

    @classmethod
    def hook_specs(cls) -> list[tuple[str, HookSpec]]:
        return collect_hooks(cls)

    def __repr__(self) -> str:
        return f"<{self.capability_name}>"


class RenderDefaults(Capability):
    """Seed the render arguments with fixed values before every action."""

    def __init__(self, **defaults: Any) -> None:
        self._defaults = defaults

    @before(priority=-100)
    def set_defaults(self, ctx: ActionContext) -> Result:
        for key, value in self._defaults.items():
            ctx.render_args.setdefault(key, value)
        return CONTINUE


class RequireHeader(Capability):
    """Refuse requests that lack a header.

    The refusal is ``Forbidden`` unless another result is given, or an
    ``ActionRedirect`` when ``redirect_to`` names an action (typically a
    login page). The header value is stored in the render arguments under
    ``render_key`` when one is given.
    """

    def __init__(
        self,
        header: str,
        *,
        otherwise: Result | None = None,
        redirect_to: ActionTarget | None = None,
        render_key: str | None = None,
        predicate: Callable[[str], bool] | None = None,
    ) -> None:
        self._header = header
        self._otherwise = otherwise or Forbidden()
        self._redirect_to = (
            ActionReference.of(redirect_to) if redirect_to is not None else None
        )
        self._render_key = render_key
        self._predicate = predicate

    @before
    def check_header(self, ctx: ActionContext) -> Result:
        value = ctx.request.header(self._header)
        if value is None or (self._predicate is not None and not self._predicate(value)):
            if self._redirect_to is not None:
                return ActionRedirect(target=self._redirect_to)
            return self._otherwise
        if self._render_key:
            ctx.render_args[self._render_key] = value
        return CONTINUE


class ETagSupport(Capability):
    """Answer conditional GETs with ``NotModified``.

    Content results of successful GET/HEAD requests get a strong ETag derived
    from their encoded body; when it matches ``If-None-Match`` the result is
    replaced by ``NotModified(etag)``. The header itself is added by the
    renderer, and only if the response is still a content result.
    """

    @after(priority=100)
    def conditional_get(self, ctx: ActionContext) -> Result:
        if ctx.request.method not in ("GET", "HEAD"):
            return CONTINUE
        etag = compute_etag(ctx.result, ctx.render_args.get(CHARSET_KEY, "utf-8"))
        if etag is None:
            return CONTINUE
        ctx.render_args[ETAG_KEY] = etag
        candidates = ctx.request.header("if-none-match")
        if candidates and etag in {c.strip() for c in candidates.split(",")}:
            return NotModified(etag)
        return CONTINUE


def compute_etag(result: Result | None, charset: str = "utf-8") -> str | None:
    """Return a quoted strong ETag for a content result, or None."""
    if not isinstance(result, CONTENT_RESULTS):
        return None
    return strong_etag(ResponseRenderer(charset).render(result).body)
