"""
Small dependency injection container.

Services are registered on a :class:`ServiceCollection` and resolved from the
:class:`ServiceProvider` it builds. Constructors are wired by annotation: a
parameter whose annotation is a registered service type receives that
service, and a ``service_provider`` parameter receives the provider itself.
"""

from __future__ import annotations

import inspect
import logging
import os
import types
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

from actionkit.core.common.exceptions import ServiceResolutionError
from actionkit.core.interfaces.di_interface import (
    IServiceCollection,
    IServiceProvider,
    ServiceLifetime,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Factory = Callable[[IServiceProvider], Any]


@dataclass
class ServiceDescriptor:
    """One registration: how to produce ``service_type`` and how long it lives."""

    service_type: type
    lifetime: ServiceLifetime
    implementation_type: type | None = None
    implementation_factory: Factory | None = None
    instance: Any | None = None

    def __post_init__(self) -> None:
        if (
            self.implementation_type is None
            and self.implementation_factory is None
            and self.instance is None
        ):
            raise ValueError(
                f"Registration of {_name(self.service_type)} needs a type, "
                "a factory or an instance"
            )


def _name(service_type: Any) -> str:
    return getattr(service_type, "__name__", str(service_type))


def _strict_diagnostics() -> bool:
    return os.getenv("DI_STRICT_DIAGNOSTICS", "false").lower() in ("true", "1", "yes")


def _candidate_types(annotation: Any) -> tuple[Any, ...]:
    """Unwrap ``X | None`` style annotations into their members."""
    if get_origin(annotation) in (types.UnionType, Union):
        return tuple(arg for arg in get_args(annotation) if arg is not type(None))
    return (annotation,)


class ServiceProvider(IServiceProvider):
    """Resolves services from a frozen set of descriptors."""

    def __init__(self, descriptors: dict[type, ServiceDescriptor]) -> None:
        self._descriptors = descriptors
        self._singletons: dict[type, Any] = {}
        self._resolving: list[type] = []
        self._diagnostics = _strict_diagnostics()

    def get_service(self, service_type: type[T]) -> T | None:
        descriptor = self._descriptors.get(service_type)
        if descriptor is None:
            if self._diagnostics:
                logger.warning(
                    "DI: nothing registered for %s (%d registrations)",
                    _name(service_type),
                    len(self._descriptors),
                )
            return None
        if descriptor.instance is not None:
            return descriptor.instance  # type: ignore[no-any-return]
        if descriptor.lifetime is ServiceLifetime.TRANSIENT:
            return self._build(descriptor)  # type: ignore[no-any-return]
        if service_type not in self._singletons:
            self._singletons[service_type] = self._build(descriptor)
        return self._singletons[service_type]  # type: ignore[no-any-return]

    def get_required_service(self, service_type: type[T]) -> T:
        service = self.get_service(service_type)
        if service is None:
            raise ServiceResolutionError(
                f"No service registered for {_name(service_type)}",
                service_name=_name(service_type),
            )
        return service

    def _build(self, descriptor: ServiceDescriptor) -> Any:
        service_type = descriptor.service_type
        if service_type in self._resolving:
            chain = " -> ".join(_name(t) for t in [*self._resolving, service_type])
            raise ServiceResolutionError(
                f"Circular dependency: {chain}", service_name=_name(service_type)
            )
        self._resolving.append(service_type)
        try:
            if descriptor.implementation_factory is not None:
                return descriptor.implementation_factory(self)
            return self._construct(descriptor.implementation_type or service_type)
        finally:
            self._resolving.pop()

    def _construct(self, impl_type: type) -> Any:
        try:
            signature = inspect.signature(impl_type)
        except (TypeError, ValueError):
            return impl_type()
        try:
            hints = get_type_hints(impl_type.__init__)
        except Exception:  # unresolvable forward references
            hints = {}

        kwargs: dict[str, Any] = {}
        for name, param in signature.parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if name == "service_provider":
                kwargs[name] = self
                continue
            dependency = self._resolve_parameter(hints.get(name, param.annotation))
            if dependency is not None:
                kwargs[name] = dependency
            elif param.default is param.empty:
                raise ServiceResolutionError(
                    f"Cannot construct {_name(impl_type)}: "
                    f"no registered service for parameter '{name}'",
                    service_name=_name(impl_type),
                )
        return impl_type(**kwargs)

    def _resolve_parameter(self, annotation: Any) -> Any | None:
        for candidate in _candidate_types(annotation):
            if isinstance(candidate, type) and candidate in self._descriptors:
                return self.get_service(candidate)
        return None


class ServiceCollection(IServiceCollection):
    """Mutable set of registrations; turned into a provider once wiring is done."""

    def __init__(self) -> None:
        self._descriptors: dict[type, ServiceDescriptor] = {}

    def _add(
        self,
        service_type: type,
        lifetime: ServiceLifetime,
        implementation_type: type | None,
        implementation_factory: Factory | None,
    ) -> ServiceCollection:
        if implementation_type is None and implementation_factory is None:
            implementation_type = service_type
        if service_type in self._descriptors:
            logger.debug("Replacing registration for %s", _name(service_type))
        self._descriptors[service_type] = ServiceDescriptor(
            service_type,
            lifetime,
            implementation_type=implementation_type,
            implementation_factory=implementation_factory,
        )
        return self

    def add_singleton(
        self,
        service_type: type[Any],
        implementation_type: type | None = None,
        implementation_factory: Factory | None = None,
    ) -> ServiceCollection:
        return self._add(
            service_type,
            ServiceLifetime.SINGLETON,
            implementation_type,
            implementation_factory,
        )

    def add_transient(
        self,
        service_type: type[Any],
        implementation_type: type | None = None,
        implementation_factory: Factory | None = None,
    ) -> ServiceCollection:
        return self._add(
            service_type,
            ServiceLifetime.TRANSIENT,
            implementation_type,
            implementation_factory,
        )

    def add_instance(self, service_type: type[Any], instance: Any) -> ServiceCollection:
        self._descriptors[service_type] = ServiceDescriptor(
            service_type, ServiceLifetime.SINGLETON, instance=instance
        )
        return self

    def is_registered(self, service_type: type[Any]) -> bool:
        return service_type in self._descriptors

    def build_service_provider(self) -> ServiceProvider:
        return ServiceProvider(dict(self._descriptors))
