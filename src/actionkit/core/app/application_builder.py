"""
Application builder.

Wires the framework services through the DI container, registers and
freezes the controllers, and exposes everything as a FastAPI application
with a single catch-all endpoint that hands requests to the dispatcher.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from fastapi import FastAPI, Request
from starlette.responses import Response

from actionkit.core.common.exceptions import ArgumentBindingError, ConfigurationError
from actionkit.core.config.app_config import AppConfig
from actionkit.core.controllers.base import Controller
from actionkit.core.controllers.registry import ControllerRegistry
from actionkit.core.di.container import ServiceCollection
from actionkit.core.domain.results import BadRequest
from actionkit.core.interfaces.di_interface import IServiceProvider
from actionkit.core.interfaces.response_renderer_interface import IResponseRenderer
from actionkit.core.services.action_invoker import ActionInvoker
from actionkit.core.services.request_dispatcher import RequestDispatcher
from actionkit.core.services.response_renderer import ResponseRenderer
from actionkit.core.services.result_resolver import ResultResolver
from actionkit.core.services.route_table import RouteTable
from actionkit.core.transport.fastapi.exception_adapters import (
    DomainExceptionMiddleware,
)
from actionkit.core.transport.fastapi.logging_middleware import (
    RequestLoggingMiddleware,
)
from actionkit.core.transport.fastapi.request_adapters import (
    fastapi_to_action_request,
)
from actionkit.core.transport.fastapi.response_adapters import to_fastapi_response

logger = logging.getLogger(__name__)

HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def import_controller_modules(modules: Iterable[str]) -> None:
    """Import modules so that their ``@controller`` declarations run.

    Raises:
        ConfigurationError: If a module cannot be imported.
    """
    for module_name in modules:
        try:
            importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(
                f"Cannot import controller module '{module_name}': {e}",
                details={"module": module_name},
            ) from e
        logger.debug("Imported controller module %s", module_name)


def build_route_table(config: AppConfig, routes: RouteTable | None = None) -> RouteTable:
    table = routes if routes is not None else RouteTable(base_url=config.base_url)
    for route in config.routes:
        table.add(route.method, route.path, route.action)
    return table


def register_core_services(
    services: ServiceCollection,
    config: AppConfig,
    routes: RouteTable,
) -> ServiceCollection:
    """Register the framework services unless the caller registered their own."""
    services.add_instance(AppConfig, config)
    services.add_instance(RouteTable, routes)

    if not services.is_registered(IResponseRenderer):
        services.add_singleton(
            IResponseRenderer,
            implementation_factory=lambda _: ResponseRenderer(
                charset=config.results.charset
            ),
        )
    if not services.is_registered(ResultResolver):
        services.add_singleton(
            ResultResolver,
            implementation_factory=lambda p: ResultResolver(
                p.get_required_service(RouteTable)
            ),
        )
    services.add_singleton(
        ControllerRegistry,
        implementation_factory=lambda p: ControllerRegistry(service_provider=p),
    )
    services.add_singleton(
        ActionInvoker,
        implementation_factory=lambda p: ActionInvoker(
            p.get_required_service(ControllerRegistry),
            p.get_required_service(ResultResolver),
            expose_error_details=config.results.expose_error_details,
        ),
    )
    services.add_singleton(
        RequestDispatcher,
        implementation_factory=lambda p: RequestDispatcher(
            p.get_required_service(RouteTable),
            p.get_required_service(ControllerRegistry),
            p.get_required_service(ActionInvoker),
            p.get_required_service(IResponseRenderer),  # type: ignore[type-abstract]
        ),
    )
    return services


def register_controllers(
    registry: ControllerRegistry,
    controllers: Sequence[type[Controller] | tuple[type[Controller], Sequence[Any]]]
    | None,
) -> None:
    """Register explicit controllers, or every declared one when none are given."""
    if controllers is None:
        registry.register_declared()
        return
    for entry in controllers:
        if isinstance(entry, tuple):
            klass, capabilities = entry
            registry.register(klass, capabilities=capabilities)
        else:
            registry.register(entry)


def build_app(
    config: AppConfig | dict[str, Any] | None = None,
    *,
    routes: RouteTable | None = None,
    controllers: Sequence[type[Controller] | tuple[type[Controller], Sequence[Any]]]
    | None = None,
    services: ServiceCollection | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: The application configuration (AppConfig object or dict);
            loaded from the environment when omitted
        routes: A route table to extend with the configured routes
        controllers: Controllers to register, optionally with extra
            capability sets; every ``@controller``-declared class when omitted
        services: A service collection holding application services
            (controller factories, custom renderer or resolver)

    Returns:
        The FastAPI ASGI application instance.
    """
    if config is None:
        config = AppConfig.from_env()
    elif isinstance(config, dict):
        config = AppConfig(**config)

    import_controller_modules(config.controllers)

    services = services or ServiceCollection()
    register_core_services(services, config, build_route_table(config, routes))
    provider = services.build_service_provider()

    registry = provider.get_required_service(ControllerRegistry)
    register_controllers(registry, controllers)
    registry.freeze()

    return _create_fastapi_app(config, provider)


def _create_fastapi_app(config: AppConfig, provider: IServiceProvider) -> FastAPI:
    app = FastAPI(title="actionkit", openapi_url=None, docs_url=None, redoc_url=None)
    app.state.service_provider = provider
    app.state.app_config = config

    dispatcher = provider.get_required_service(RequestDispatcher)

    async def dispatch(request: Request, full_path: str = "") -> Response:
        try:
            action_request = await fastapi_to_action_request(request)
        except ArgumentBindingError as e:
            envelope = dispatcher.render(BadRequest(e.message))
        else:
            envelope = await dispatcher.dispatch(action_request)
        return to_fastapi_response(envelope, head=request.method == "HEAD")

    app.add_api_route(
        "/{full_path:path}",
        dispatch,
        methods=HTTP_METHODS,
        include_in_schema=False,
    )

    app.add_middleware(DomainExceptionMiddleware)
    # Last added runs outermost
    if config.logging.request_logging:
        app.add_middleware(RequestLoggingMiddleware)

    return app
