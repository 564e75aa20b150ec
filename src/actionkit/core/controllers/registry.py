"""
Controller registry.

Controllers are process-wide singletons. Declaring a controller with the
:func:`controller` decorator records the class; at start-up the application
builder creates a :class:`ControllerRegistry`, registers every declared
class (instantiating it once through the DI container), and freezes the
registry. After that it is read-only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from actionkit.core.common.exceptions import (
    ActionNotFoundError,
    ControllerRegistrationError,
)
from actionkit.core.controllers.base import Controller
from actionkit.core.domain.action_reference import ActionReference
from actionkit.core.interfaces.di_interface import IServiceProvider
from actionkit.core.interfaces.model_bases import InternalDTO
from actionkit.core.services.interceptor_chain import InterceptorChain

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type[Controller])

_declared: dict[str, tuple[type[Controller], tuple[Any, ...]]] = {}


def controller(
    cls: C | None = None, *, capabilities: Sequence[Any] = ()
) -> Any:
    """Declare a controller class so the application builder registers it.

    Usable bare (``@controller``) or with extra capability sets
    (``@controller(capabilities=[Secure()])``).
    """

    def decorator(klass: C) -> C:
        if not (isinstance(klass, type) and issubclass(klass, Controller)):
            raise ControllerRegistrationError(
                f"{klass!r} is not a Controller subclass"
            )
        name = klass.controller_name
        existing = _declared.get(name)
        if existing is not None and existing[0] is not klass:
            raise ControllerRegistrationError(
                f"Controller '{name}' is already declared", controller_name=name
            )
        _declared[name] = (klass, tuple(capabilities))
        return klass

    if cls is not None:
        return decorator(cls)
    return decorator


def get_declared_controllers() -> dict[str, tuple[type[Controller], tuple[Any, ...]]]:
    return _declared.copy()


def clear_declared_controllers() -> None:
    _declared.clear()


@dataclass(frozen=True)
class ControllerRegistration(InternalDTO):
    """A registered controller instance and its interceptor chain."""

    controller: Controller
    chain: InterceptorChain

    @property
    def name(self) -> str:
        return self.controller.controller_name


class ControllerRegistry:
    """Read-only (once frozen) map of controller name to registration."""

    def __init__(self, service_provider: IServiceProvider | None = None) -> None:
        self._service_provider = service_provider
        self._registrations: dict[str, ControllerRegistration] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True
        logger.info(
            "Controller registry frozen with %d controller(s): %s",
            len(self._registrations),
            ", ".join(sorted(self._registrations)) or "-",
        )

    def register(
        self,
        controller_cls: type[Controller],
        *,
        capabilities: Sequence[Any] = (),
        instance: Controller | None = None,
    ) -> ControllerRegistration:
        """Instantiate (once) and register a controller.

        Args:
            controller_cls: The controller class
            capabilities: Capability sets placed before the controller's own
            instance: A ready instance to use instead of creating one

        Raises:
            ControllerRegistrationError: If the registry is frozen, the name is
                taken, or the controller cannot be created.
        """
        name = controller_cls.controller_name
        if self._frozen:
            raise ControllerRegistrationError(
                f"Cannot register '{name}': the controller registry is frozen",
                controller_name=name,
            )
        if name in self._registrations:
            raise ControllerRegistrationError(
                f"Controller '{name}' is already registered", controller_name=name
            )

        if instance is None:
            instance = self._create(controller_cls)
        registration = ControllerRegistration(
            controller=instance,
            chain=InterceptorChain.compose(instance, capabilities),
        )
        self._registrations[name] = registration
        logger.debug(
            "Registered controller %s: actions=%s, interceptors=%d",
            name,
            controller_cls.action_names(),
            len(registration.chain),
        )
        return registration

    def register_declared(self) -> None:
        """Register every class declared with :func:`controller`."""
        for klass, capabilities in get_declared_controllers().values():
            if klass.controller_name not in self._registrations:
                self.register(klass, capabilities=capabilities)

    def _create(self, controller_cls: type[Controller]) -> Controller:
        factory: Callable[[], Controller] = controller_cls
        if self._service_provider is not None:
            provided = self._service_provider.get_service(controller_cls)
            if provided is not None:
                return provided
        try:
            return factory()
        except TypeError as e:
            raise ControllerRegistrationError(
                f"Cannot create controller '{controller_cls.controller_name}'; "
                "register it with the service collection if it needs dependencies",
                controller_name=controller_cls.controller_name,
            ) from e

    def get(self, name: str) -> ControllerRegistration:
        try:
            return self._registrations[name]
        except KeyError:
            raise ActionNotFoundError(
                f"No controller named '{name}'", action_id=name
            ) from None

    def resolve(self, action_id: str) -> tuple[ControllerRegistration, str]:
        """Return the registration and action name for ``"Controller.action"``.

        Raises:
            ActionNotFoundError: If the controller or the action is unknown.
        """
        try:
            reference = ActionReference.parse(action_id)
        except ValueError as e:
            raise ActionNotFoundError(str(e), action_id=action_id) from e
        registration = self.get(reference.controller)
        if not registration.controller.has_action(reference.action):
            raise ActionNotFoundError(
                f"Controller '{reference.controller}' has no action '{reference.action}'",
                action_id=action_id,
            )
        return registration, reference.action

    def action_ids(self) -> list[str]:
        return [
            f"{name}.{action}"
            for name, registration in self._registrations.items()
            for action in registration.controller.action_names()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)
