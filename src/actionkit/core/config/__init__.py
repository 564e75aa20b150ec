# Configuration package

from actionkit.core.config.app_config import AppConfig, load_config, load_routes

__all__ = [
    "AppConfig",
    "load_config",
    "load_routes",
]
