from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

T = TypeVar("T")


class ServiceLifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class IServiceProvider(ABC):
    """Read side of the container, handed to factories and services."""

    @abstractmethod
    def get_service(self, service_type: type[T]) -> T | None:
        """Return the service registered for ``service_type`` or None."""

    @abstractmethod
    def get_required_service(self, service_type: type[T]) -> T:
        """Return the service registered for ``service_type``.

        Raises:
            ServiceResolutionError: If nothing is registered for the type
        """

    def get_required_service_or_default(
        self, service_type: type[T], default_factory: Callable[[], T]
    ) -> T:
        service = self.get_service(service_type)
        return default_factory() if service is None else service


class IServiceCollection(ABC):
    """Write side of the container, used while the application is wired."""

    @abstractmethod
    def add_singleton(
        self,
        service_type: type[T],
        implementation_type: type | None = None,
        implementation_factory: Callable[[IServiceProvider], T] | None = None,
    ) -> IServiceCollection: ...

    @abstractmethod
    def add_transient(
        self,
        service_type: type[T],
        implementation_type: type | None = None,
        implementation_factory: Callable[[IServiceProvider], T] | None = None,
    ) -> IServiceCollection: ...

    @abstractmethod
    def add_instance(self, service_type: type[T], instance: T) -> IServiceCollection: ...

    @abstractmethod
    def is_registered(self, service_type: type) -> bool: ...

    @abstractmethod
    def build_service_provider(self) -> IServiceProvider: ...
