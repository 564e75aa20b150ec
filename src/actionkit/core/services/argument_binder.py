"""
Binding of request parameters to action arguments.

Values are looked up by parameter name in path parameters, then query
parameters, then body parameters, and coerced to the parameter's annotation
with a pydantic ``TypeAdapter``. A parameter annotated with
:class:`ActionContext` receives the invocation context itself.
"""

from __future__ import annotations

import inspect
import logging
import typing
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from actionkit.core.common.exceptions import ArgumentBindingError
from actionkit.core.domain.request_context import ActionContext, ActionRequest

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def _adapter_for(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(annotation)


def _resolved_hints(func: Callable[..., Any]) -> dict[str, Any]:
    target = getattr(func, "__func__", func)
    try:
        return typing.get_type_hints(target)
    except (NameError, TypeError):
        # Unresolvable forward references bind as untyped
        return {}


def _lookup(
    name: str, request: ActionRequest, explicit: dict[str, Any]
) -> tuple[bool, Any]:
    for source in (explicit, request.path_params, request.query_params, request.params):
        if name in source:
            return True, source[name]
    return False, None


class ArgumentBinder:
    """Binds request values to an action's keyword arguments."""

    def bind(
        self,
        func: Callable[..., Any],
        request: ActionRequest,
        context: ActionContext | None = None,
        explicit: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build the keyword arguments for calling ``func``.

        Args:
            func: The bound action method
            request: The incoming request
            context: The invocation context, injected where annotated
            explicit: Values supplied by the caller; they take precedence
                over request values

        Returns:
            Keyword arguments ready for the call

        Raises:
            ArgumentBindingError: If a required value is missing or invalid.
        """
        signature = inspect.signature(func)
        hints = _resolved_hints(func)
        bound: dict[str, Any] = {}
        errors: dict[str, str] = {}

        for name, param in signature.parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            annotation = hints.get(name, param.annotation)

            if annotation is ActionContext or annotation == "ActionContext":
                bound[name] = context
                continue

            found, raw = _lookup(name, request, explicit or {})
            if not found:
                if param.default is param.empty:
                    errors[name] = "missing"
                continue

            if annotation is param.empty or annotation is Any or isinstance(annotation, str):
                bound[name] = raw
                continue
            try:
                bound[name] = _adapter_for(annotation).validate_python(
                    raw, strict=False
                )
            except PydanticValidationError as e:
                errors[name] = e.errors()[0].get("msg", "invalid value")
            except TypeError:
                # Annotation pydantic cannot build a schema for
                bound[name] = raw

        if errors:
            summary = ", ".join(f"{k}: {v}" for k, v in sorted(errors.items()))
            raise ArgumentBindingError(
                f"Invalid arguments for {getattr(func, '__name__', func)}: {summary}",
                details={"errors": errors},
            )
        return bound
