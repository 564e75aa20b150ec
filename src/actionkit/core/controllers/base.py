"""
Controller base class and declaration decorators.

A controller groups related actions and interceptors::

    class Articles(Controller):
        capabilities = (Secure(), RenderDefaults(app_title="News"))

        @before(unless={"index"})
        def load_user(self, ctx):
            ctx.render_args["user"] = ...
            return CONTINUE

        @action
        def show(self, id: int):
            article = self.repo.get(id)
            if article is None:
                return NotFound("Article not found")
            return Html(render(article))

        @action
        def delete(self, id: int):
            self.repo.delete(id)
            return ActionRedirect.to(Articles.index)

Controllers are instantiated once by the registry and must not keep
per-request state on ``self``; anything request-scoped belongs in the
invocation's render arguments.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Iterable, Sequence
from typing import Any, ClassVar, TypeVar

from actionkit.core.domain.action_reference import OWNER_ATTRIBUTE
from actionkit.core.domain.interceptor import (
    HOOK_ATTRIBUTE,
    HookSpec,
    InterceptorStage,
)

F = TypeVar("F", bound=Callable[..., Any])

ACTION_ATTRIBUTE = "__actionkit_action__"


def action(func: F) -> F:
    """Mark a controller method as an action."""
    setattr(func, ACTION_ATTRIBUTE, True)
    return func


def _hook_decorator(
    stage: InterceptorStage,
    *,
    priority: int = 0,
    only: Iterable[str] = (),
    unless: Iterable[str] = (),
    exceptions: tuple[type[BaseException], ...] = (),
) -> Callable[[F], F]:
    spec = HookSpec(
        stage=stage,
        priority=priority,
        only=frozenset(only),
        unless=frozenset(unless),
        exceptions=exceptions,
    )

    def decorator(func: F) -> F:
        if getattr(func, ACTION_ATTRIBUTE, False):
            raise TypeError(f"{func.__qualname__} cannot be both an action and a hook")
        setattr(func, HOOK_ATTRIBUTE, spec)
        return func

    return decorator


def _bare_or_configured(
    stage: InterceptorStage, func: Any, kwargs: dict[str, Any]
) -> Any:
    if callable(func):
        return _hook_decorator(stage, **kwargs)(func)
    return _hook_decorator(stage, **kwargs)


def before(
    func: F | None = None,
    *,
    priority: int = 0,
    only: Iterable[str] = (),
    unless: Iterable[str] = (),
) -> Any:
    """Run the hook before the action; a non-Continue result short-circuits it."""
    return _bare_or_configured(
        InterceptorStage.BEFORE,
        func,
        {"priority": priority, "only": only, "unless": unless},
    )


def after(
    func: F | None = None,
    *,
    priority: int = 0,
    only: Iterable[str] = (),
    unless: Iterable[str] = (),
) -> Any:
    """Run the hook after the action; a non-Continue result replaces the action's."""
    return _bare_or_configured(
        InterceptorStage.AFTER,
        func,
        {"priority": priority, "only": only, "unless": unless},
    )


def finally_(
    func: F | None = None,
    *,
    priority: int = 0,
    only: Iterable[str] = (),
    unless: Iterable[str] = (),
) -> Any:
    """Run the hook once the invocation is over, whatever happened."""
    return _bare_or_configured(
        InterceptorStage.FINALLY,
        func,
        {"priority": priority, "only": only, "unless": unless},
    )


def catch(
    *exceptions: type[BaseException],
    priority: int = 0,
    only: Iterable[str] = (),
    unless: Iterable[str] = (),
) -> Callable[[F], F]:
    """Handle exceptions of the given types raised by hooks or the action.

    With no exception types the hook handles any ``Exception``.
    """
    return _hook_decorator(
        InterceptorStage.CATCH,
        priority=priority,
        only=only,
        unless=unless,
        exceptions=tuple(exceptions),
    )


def collect_hooks(cls: type) -> list[tuple[str, HookSpec]]:
    """Return ``(attribute name, spec)`` for every hook on ``cls``.

    Base classes come first; within a class definition order is kept. A hook
    overridden in a subclass keeps the position of the original.
    """
    found: dict[str, HookSpec] = {}
    for klass in reversed(cls.__mro__):
        for attr_name, value in vars(klass).items():
            spec = getattr(value, HOOK_ATTRIBUTE, None)
            if isinstance(spec, HookSpec):
                found[attr_name] = spec
            elif attr_name in found:
                # Overridden by a plain method
                del found[attr_name]
    return list(found.items())


def _inherited_action(
    func: Callable[..., Any], cls: type, name: str
) -> Callable[..., Any]:
    """Wrap an action defined on a base class or mixin so ``cls`` can own it."""
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def inherited(*args: Any, **kwargs: Any) -> Any:
            return await func(*args, **kwargs)

    else:

        @functools.wraps(func)
        def inherited(*args: Any, **kwargs: Any) -> Any:
            return func(*args, **kwargs)

    inherited.__qualname__ = f"{cls.__qualname__}.{name}"
    return inherited


class Controller:
    """Base class for controllers.

    Attributes:
        controller_name: Name used in action identifiers (``"Name.action"``);
            defaults to the class name.
        capabilities: Ordered capability sets whose interceptors are added to
            this controller's chain, before its own hooks.
    """

    controller_name: ClassVar[str]
    capabilities: ClassVar[Sequence[Any]] = ()
    _actions: ClassVar[dict[str, Callable[..., Any]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "controller_name" not in cls.__dict__:
            cls.controller_name = cls.__name__

        actions: dict[str, Callable[..., Any]] = {}
        for klass in reversed(cls.__mro__):
            for attr_name, value in vars(klass).items():
                if getattr(value, ACTION_ATTRIBUTE, False):
                    actions[attr_name] = value
                elif attr_name in actions:
                    del actions[attr_name]
        for attr_name, value in actions.items():
            if attr_name not in vars(cls):
                # Inherited or mixed in; stamp a per-class copy
                value = _inherited_action(value, cls, attr_name)
                setattr(cls, attr_name, value)
                actions[attr_name] = value
            setattr(value, OWNER_ATTRIBUTE, cls.controller_name)
        cls._actions = actions

    @classmethod
    def action_names(cls) -> list[str]:
        return list(cls._actions)

    @classmethod
    def has_action(cls, name: str) -> bool:
        return name in cls._actions

    def get_action(self, name: str) -> Callable[..., Any]:
        """Return the bound action method ``name``.

        Raises:
            KeyError: If the controller has no such action.
        """
        if name not in self._actions:
            raise KeyError(name)
        return getattr(self, name)  # type: ignore[no-any-return]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} actions={self.action_names()}>"
