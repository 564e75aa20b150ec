"""
By-name references to controller actions.

An :class:`ActionReference` names a target action and the arguments it would
be called with, without calling it. It is the first half of the two-phase
redirect API: describe the target here, then let a reverse router turn the
description into a URL.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from actionkit.core.interfaces.model_bases import InternalDTO

# Attribute stamped on action functions by Controller.__init_subclass__
OWNER_ATTRIBUTE = "__actionkit_controller__"

ActionTarget = Union[str, "ActionReference", Callable[..., Any]]


@dataclass(frozen=True)
class ActionReference(InternalDTO):
    """A target action plus the arguments it should be reached with."""

    controller: str
    action: str
    arguments: dict[str, Any] = field(default_factory=dict)

    @property
    def action_id(self) -> str:
        return f"{self.controller}.{self.action}"

    def with_arguments(self, **arguments: Any) -> ActionReference:
        merged = dict(self.arguments)
        merged.update(arguments)
        return ActionReference(self.controller, self.action, merged)

    @classmethod
    def parse(cls, action_id: str, **arguments: Any) -> ActionReference:
        """Build a reference from a ``"Controller.action"`` identifier."""
        controller, sep, action = action_id.strip().rpartition(".")
        if not sep or not controller or not action:
            raise ValueError(
                f"Action identifier must look like 'Controller.action', got {action_id!r}"
            )
        return cls(controller, action, dict(arguments))

    @classmethod
    def of(cls, target: ActionTarget, **arguments: Any) -> ActionReference:
        """Describe ``target`` without invoking it.

        Args:
            target: An action identifier string, an existing reference, or an
                action function (bound or unbound) of a registered controller.
            **arguments: Arguments the target action would receive.

        Returns:
            The reference.

        Raises:
            ValueError: If the target cannot be identified as an action.
        """
        if isinstance(target, ActionReference):
            return target.with_arguments(**arguments)
        if isinstance(target, str):
            return cls.parse(target, **arguments)

        func = getattr(target, "__func__", target)
        # Bound methods carry their controller instance
        owner = getattr(target, "__self__", None)
        controller = getattr(owner, "controller_name", None)
        if controller is None:
            controller = getattr(func, OWNER_ATTRIBUTE, None)
        if not controller:
            name = getattr(target, "__qualname__", repr(target))
            raise ValueError(f"{name} is not an action of a controller")
        return cls(controller, func.__name__, dict(arguments))

    def __str__(self) -> str:
        if not self.arguments:
            return self.action_id
        args = ", ".join(f"{k}={v!r}" for k, v in sorted(self.arguments.items()))
        return f"{self.action_id}({args})"
