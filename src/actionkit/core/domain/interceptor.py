"""
Interceptor descriptors.

Hooks are declared with the decorators in
:mod:`actionkit.core.controllers.base`, which attach a :class:`HookSpec` to
the function. When a controller is registered the specs are bound to their
owner (controller or capability instance) and become :class:`Interceptor`
entries of the controller's chain.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from actionkit.core.interfaces.model_bases import InternalDTO

HOOK_ATTRIBUTE = "__actionkit_hook__"


class InterceptorStage(str, Enum):
    """Lifecycle points an interceptor can be bound to."""

    BEFORE = "before"
    AFTER = "after"
    FINALLY = "finally"
    CATCH = "catch"


@dataclass(frozen=True)
class HookSpec(InternalDTO):
    """Declaration attached to a hook function by a decorator."""

    stage: InterceptorStage
    priority: int = 0
    only: frozenset[str] = frozenset()
    unless: frozenset[str] = frozenset()
    exceptions: tuple[type[BaseException], ...] = ()


@dataclass(frozen=True)
class Interceptor(InternalDTO):
    """A hook bound to its owner and ready to run."""

    name: str
    spec: HookSpec
    func: Callable[..., Any]
    source: str

    @property
    def stage(self) -> InterceptorStage:
        return self.spec.stage

    @property
    def priority(self) -> int:
        return self.spec.priority

    def applies_to(self, action_name: str) -> bool:
        if self.spec.only and action_name not in self.spec.only:
            return False
        return action_name not in self.spec.unless

    def handles(self, exc: BaseException) -> bool:
        if self.spec.stage is not InterceptorStage.CATCH:
            return False
        if not self.spec.exceptions:
            return isinstance(exc, Exception)
        return isinstance(exc, self.spec.exceptions)

    @property
    def qualified_name(self) -> str:
        return f"{self.source}.{self.name}"
