import pytest

from actionkit.core.common.exceptions import ServiceResolutionError
from actionkit.core.di.container import ServiceCollection, ServiceDescriptor
from actionkit.core.interfaces.di_interface import IServiceProvider, ServiceLifetime


class Clock:
    pass


class UsesProvider:
    def __init__(self, service_provider: IServiceProvider | None = None) -> None:
        self.service_provider = service_provider


class TestServiceCollection:
    def test_singleton_is_shared(self):
        provider = ServiceCollection().add_singleton(Clock).build_service_provider()
        assert provider.get_service(Clock) is provider.get_service(Clock)

    def test_transient_is_new_each_time(self):
        provider = ServiceCollection().add_transient(Clock).build_service_provider()
        assert provider.get_service(Clock) is not provider.get_service(Clock)

    def test_instance_registration(self):
        clock = Clock()
        provider = ServiceCollection().add_instance(Clock, clock).build_service_provider()
        assert provider.get_required_service(Clock) is clock

    def test_factory_receives_provider(self):
        services = ServiceCollection()
        services.add_instance(Clock, Clock())
        services.add_singleton(
            UsesProvider, implementation_factory=lambda p: UsesProvider(p)
        )
        provider = services.build_service_provider()
        assert provider.get_required_service(UsesProvider).service_provider is provider

    def test_provider_is_injected_by_parameter_name(self):
        provider = ServiceCollection().add_singleton(UsesProvider).build_service_provider()
        assert provider.get_required_service(UsesProvider).service_provider is provider

    def test_missing_service(self):
        provider = ServiceCollection().build_service_provider()
        assert provider.get_service(Clock) is None
        with pytest.raises(ServiceResolutionError, match="Clock"):
            provider.get_required_service(Clock)

    def test_default_factory_for_missing_service(self):
        provider = ServiceCollection().build_service_provider()
        clock = provider.get_required_service_or_default(Clock, Clock)
        assert isinstance(clock, Clock)

    def test_is_registered(self):
        services = ServiceCollection().add_singleton(Clock)
        assert services.is_registered(Clock)
        assert not services.is_registered(UsesProvider)

    def test_descriptor_requires_an_implementation(self):
        with pytest.raises(ValueError):
            ServiceDescriptor(Clock, ServiceLifetime.SINGLETON)


class Repository:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock


class OptionalClock:
    def __init__(self, clock: Clock | None = None, retries: int = 3) -> None:
        self.clock = clock
        self.retries = retries


class NeedsUnknown:
    def __init__(self, name: str) -> None:
        self.name = name


class Egg:
    def __init__(self, chicken: "Chicken") -> None:
        self.chicken = chicken


class Chicken:
    def __init__(self, egg: Egg) -> None:
        self.egg = egg


class TestConstructorWiring:
    def test_registered_dependencies_are_injected(self):
        provider = (
            ServiceCollection()
            .add_singleton(Clock)
            .add_transient(Repository)
            .build_service_provider()
        )
        repository = provider.get_required_service(Repository)
        assert repository.clock is provider.get_service(Clock)

    def test_optional_dependencies_fall_back_to_defaults(self):
        provider = ServiceCollection().add_singleton(OptionalClock).build_service_provider()
        service = provider.get_required_service(OptionalClock)
        assert service.clock is None
        assert service.retries == 3

    def test_optional_union_is_resolved_when_registered(self):
        provider = (
            ServiceCollection()
            .add_singleton(Clock)
            .add_singleton(OptionalClock)
            .build_service_provider()
        )
        assert isinstance(provider.get_required_service(OptionalClock).clock, Clock)

    def test_unresolvable_parameter(self):
        provider = ServiceCollection().add_singleton(NeedsUnknown).build_service_provider()
        with pytest.raises(ServiceResolutionError, match="'name'"):
            provider.get_required_service(NeedsUnknown)

    def test_circular_dependency_is_reported(self):
        provider = (
            ServiceCollection()
            .add_singleton(Egg)
            .add_singleton(Chicken)
            .build_service_provider()
        )
        with pytest.raises(ServiceResolutionError, match="Circular dependency"):
            provider.get_required_service(Egg)
