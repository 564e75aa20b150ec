"""
Result value resolution.

Turns whatever an action returned into exactly one result variant:

* result instances pass through (payload-free variants may be returned as
  the class itself);
* by-name references to other actions (an :class:`ActionReference`, or an
  action function such as ``Articles.index``) become an
  :class:`ActionRedirect` whose URL comes from the reverse router; the
  referenced action is not run;
* raw values are wrapped in the nearest variant: ``str`` is HTML, an
  ``Element`` is XML, dicts, lists and pydantic models are JSON and ``None``
  is a plain ``Ok``.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any
from xml.etree.ElementTree import Element

from pydantic import BaseModel

from actionkit.core.common.exceptions import ResultResolutionError
from actionkit.core.controllers.base import ACTION_ATTRIBUTE
from actionkit.core.domain.action_reference import ActionReference
from actionkit.core.domain.results import (
    ActionRedirect,
    Continue,
    Html,
    Json,
    Ok,
    Result,
    Xml,
)
from actionkit.core.interfaces.routing_interface import IReverseRouter

logger = logging.getLogger(__name__)


class ResultResolver:
    """Maps action return values to result variants."""

    def __init__(self, reverse_router: IReverseRouter | None = None) -> None:
        self._reverse_router = reverse_router

    def resolve(self, value: Any) -> Result:
        """Resolve an action's (or interceptor's) return value.

        Raises:
            ResultResolutionError: For ``Continue`` and unsupported values.
            ReverseRoutingError: If a by-name reference has no route.
        """
        if isinstance(value, type) and issubclass(value, Result):
            try:
                value = value()
            except TypeError as e:
                raise ResultResolutionError(
                    f"{value.__name__} cannot be returned without arguments"
                ) from e

        if isinstance(value, Continue):
            raise ResultResolutionError(
                "Continue is only meaningful from an interceptor"
            )
        if isinstance(value, ActionRedirect):
            return self.resolve_redirect(value)
        if isinstance(value, Result):
            return value

        if isinstance(value, ActionReference):
            return self.resolve_redirect(ActionRedirect(target=value))
        if callable(value) and getattr(
            getattr(value, "__func__", value), ACTION_ATTRIBUTE, False
        ):
            return self.resolve_redirect(ActionRedirect.to(value))

        if value is None:
            return Ok()
        if isinstance(value, str):
            return Html(value)
        if isinstance(value, Element):
            return Xml(value)
        if isinstance(value, (dict, list, tuple, BaseModel)):
            return Json(value)

        raise ResultResolutionError(
            f"Cannot turn a {type(value).__name__} into a result",
            value_type=type(value).__name__,
        )

    def resolve_redirect(self, redirect: ActionRedirect) -> ActionRedirect:
        """Fill in the URL of an action redirect without invoking its target."""
        if redirect.url is not None:
            return redirect
        if redirect.target is None:
            raise ResultResolutionError("ActionRedirect needs a target action")
        if self._reverse_router is None:
            raise ResultResolutionError(
                f"No reverse router configured to resolve {redirect.target}"
            )
        url = self._reverse_router.reverse(redirect.target)
        logger.debug("Resolved %s to %s", redirect.target, url)
        return dataclasses.replace(redirect, url=url)
