from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from actionkit.core.common.exceptions import ConfigurationError
from actionkit.core.common.logging_utils import LogFormat
from actionkit.core.interfaces.model_bases import DomainModel

logger = logging.getLogger(__name__)

ENV_PREFIX = "ACTIONKIT_"


def _env_to_bool(name: str, default: bool, env: Mapping[str, str]) -> bool:
    """Return an environment variable parsed as a boolean flag."""
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_to_int(name: str, default: int, env: Mapping[str, str]) -> int:
    """Return an environment variable parsed as an integer."""
    value = env.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s=%r", name, value)
        return default


def _env_to_list(name: str, env: Mapping[str, str]) -> list[str] | None:
    """Return a comma-separated environment variable as a list."""
    value = env.get(name)
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(DomainModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.CONSOLE
    request_logging: bool = False
    log_file: str | None = None


class ResultsConfig(DomainModel):
    """How result values are rendered."""

    charset: str = "utf-8"
    # Include exception type and message in Error bodies
    expose_error_details: bool = False

    @field_validator("charset")
    @classmethod
    def _known_charset(cls, value: str) -> str:
        import codecs

        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"Unknown charset: {value}") from e
        return value


class RouteConfig(DomainModel):
    """One ``method path -> Controller.action`` route."""

    method: str = "GET"
    path: str
    action: str

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()


class AppConfig(DomainModel):
    """Complete application configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    # Prefix for URLs produced by reverse routing
    base_url: str = ""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    results: ResultsConfig = Field(default_factory=ResultsConfig)

    # Modules imported at start-up so their controllers get declared
    controllers: list[str] = Field(default_factory=list)
    routes: list[RouteConfig] = Field(default_factory=list)

    @classmethod
    def from_env(cls, *, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Create AppConfig from ``ACTIONKIT_*`` environment variables."""
        env: Mapping[str, str] = environ if environ is not None else os.environ
        return cls(**_env_overrides(env, cls()))

    def save(self, path: str | Path) -> None:
        """Save the current configuration as YAML."""
        import yaml

        data = self.model_dump(mode="json", exclude_none=True)
        with Path(path).open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)


def _env_overrides(env: Mapping[str, str], base: AppConfig) -> dict[str, Any]:
    """Return ``base`` as a dict with environment overrides applied."""
    config = base.model_dump()

    config["host"] = env.get(f"{ENV_PREFIX}HOST", config["host"])
    config["port"] = _env_to_int(f"{ENV_PREFIX}PORT", config["port"], env)
    config["base_url"] = env.get(f"{ENV_PREFIX}BASE_URL", config["base_url"])

    logging_cfg = config["logging"]
    level = env.get(f"{ENV_PREFIX}LOG_LEVEL")
    if level is not None:
        logging_cfg["level"] = level.strip().upper()
    log_format = env.get(f"{ENV_PREFIX}LOG_FORMAT")
    if log_format is not None:
        logging_cfg["format"] = log_format.strip().lower()
    logging_cfg["request_logging"] = _env_to_bool(
        f"{ENV_PREFIX}REQUEST_LOGGING", logging_cfg["request_logging"], env
    )
    logging_cfg["log_file"] = env.get(f"{ENV_PREFIX}LOG_FILE", logging_cfg["log_file"])

    results_cfg = config["results"]
    results_cfg["charset"] = env.get(f"{ENV_PREFIX}CHARSET", results_cfg["charset"])
    results_cfg["expose_error_details"] = _env_to_bool(
        f"{ENV_PREFIX}EXPOSE_ERROR_DETAILS", results_cfg["expose_error_details"], env
    )

    controllers = _env_to_list(f"{ENV_PREFIX}CONTROLLERS", env)
    if controllers is not None:
        config["controllers"] = controllers

    return config


def load_config(
    path: str | Path | None = None, *, environ: Mapping[str, str] | None = None
) -> AppConfig:
    """Load configuration from an optional YAML file, then apply environment overrides.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid.
    """
    env: Mapping[str, str] = environ if environ is not None else os.environ
    file_config: dict[str, Any] = {}

    if path is not None:
        import yaml

        p = Path(path)
        if p.suffix.lower() not in (".yaml", ".yml"):
            raise ConfigurationError(
                f"Unsupported configuration file format: {p.suffix}. Use YAML (.yaml/.yml).",
                details={"path": str(p)},
            )
        try:
            with p.open(encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {p}", details={"path": str(p)}
            ) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {p}: {e}", details={"path": str(p)}
            ) from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Configuration file {p} must contain a mapping",
                details={"path": str(p)},
            )
        logger.info("Loaded configuration from %s", p)

    try:
        base = AppConfig(**file_config)
        return AppConfig(**_env_overrides(env, base))
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False)},
        ) from e


def load_routes(path: str | Path) -> list[RouteConfig]:
    """Load routes from a YAML file.

    The file holds either a list of ``{method, path, action}`` mappings or a
    mapping with such a list under ``routes``.

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    import yaml

    p = Path(path)
    try:
        with p.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Routes file not found: {p}", details={"path": str(p)}
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {p}: {e}", details={"path": str(p)}
        ) from e

    if isinstance(data, dict):
        data = data.get("routes", [])
    if not isinstance(data, list):
        raise ConfigurationError(
            f"Routes file {p} must contain a list of routes", details={"path": str(p)}
        )
    try:
        return [RouteConfig(**entry) for entry in data]
    except (TypeError, PydanticValidationError) as e:
        raise ConfigurationError(
            f"Invalid route in {p}: {e}", details={"path": str(p)}
        ) from e
