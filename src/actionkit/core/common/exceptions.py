"""
Exception hierarchy for actionkit.

Every error carries an HTTP status hint. The action invoker turns it into an
``Error`` result and the transport layer into a JSON payload, without either
of them knowing the concrete type. Keyword arguments given at the raise site
(``action_id=...``, ``controller_name=...``) become attributes and are
included in :meth:`ActionKitError.to_dict`.
"""

from __future__ import annotations

from typing import Any, ClassVar


class ActionKitError(Exception):
    """Base class for all actionkit errors."""

    status_code: int = 500
    default_message: ClassVar[str] = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        details: dict | None = None,
        *,
        status_code: int | None = None,
        **context: Any,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        for key, value in context.items():
            setattr(self, key, value)

    def to_dict(self) -> dict:
        return {
            "error": {
                "message": self.message,
                "type": type(self).__name__,
                "details": self.details,
                **self.context,
            }
        }


class ActionNotFoundError(ActionKitError):
    """An action identifier does not name a registered action."""

    status_code = 404
    default_message = "Action not found"


class ControllerRegistrationError(ActionKitError):
    """A controller cannot be declared or registered, or the registry is frozen."""

    default_message = "Controller registration failed"


class ReverseRoutingError(ActionKitError):
    """No route can produce a URL for an action reference."""

    default_message = "No route for action"


class ResultResolutionError(ActionKitError):
    """An action's return value cannot become a result, or a result cannot be rendered."""

    default_message = "Unsupported action return value"


class ArgumentBindingError(ActionKitError):
    status_code = 400
    default_message = "Invalid action arguments"


class ConfigurationError(ActionKitError):
    status_code = 400
    default_message = "Configuration error"


class ServiceResolutionError(ActionKitError):
    default_message = "Service resolution failed"
