"""
Command line entry point.

Loads the configuration (YAML file, then environment, then command line
flags), configures logging, builds the application and serves it with
uvicorn.
"""

import argparse
import logging
import socket
import sys
from collections.abc import Callable

import uvicorn
from fastapi import FastAPI

from actionkit.core.app.application_builder import build_app
from actionkit.core.common.exceptions import ActionKitError
from actionkit.core.config.app_config import (
    AppConfig,
    LogLevel,
    load_config,
    load_routes,
)


def is_port_in_use(host: str, port: int) -> bool:
    """Check if a port is in use on a given host."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex((host, port)) == 0


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run an actionkit application")
    parser.add_argument(
        "--config",
        dest="config_file",
        metavar="PATH",
        help="Path to a YAML configuration file",
    )
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[level.value for level in LogLevel],
        type=str.upper,
        help="Logging level",
    )
    parser.add_argument(
        "--log-file", dest="log_file", metavar="PATH", help="Also log to this file"
    )
    parser.add_argument(
        "--controllers",
        metavar="MODULE[,MODULE]",
        help="Modules to import so their controllers are declared",
    )
    parser.add_argument(
        "--routes",
        dest="routes_file",
        metavar="PATH",
        help="YAML file with additional routes",
    )
    parser.add_argument(
        "--request-logging",
        dest="request_logging",
        action="store_true",
        default=None,
        help="Log every request and response",
    )
    return parser


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_cli_parser().parse_args(argv)


def apply_cli_args(args: argparse.Namespace) -> AppConfig:
    """Load the configuration and apply the command line overrides."""
    cfg = load_config(args.config_file)

    if args.host is not None:
        cfg.host = args.host
    if args.port is not None:
        cfg.port = args.port
    if args.log_level is not None:
        cfg.logging.level = LogLevel(args.log_level)
    if args.log_file is not None:
        cfg.logging.log_file = args.log_file
    if args.request_logging is not None:
        cfg.logging.request_logging = args.request_logging
    if args.controllers:
        extra = [m.strip() for m in args.controllers.split(",") if m.strip()]
        cfg.controllers = [*cfg.controllers, *extra]
    if args.routes_file:
        cfg.routes = [*cfg.routes, *load_routes(args.routes_file)]
    return cfg


def _configure_logging(cfg: AppConfig) -> None:
    """Configure logging based on configuration."""
    from actionkit.core.common.logging_utils import (
        configure_logging_with_environment_tagging,
    )

    configure_logging_with_environment_tagging(
        level=getattr(logging, cfg.logging.level.value),
        log_file=cfg.logging.log_file,
        structured_format=cfg.logging.format,
    )


def main(
    argv: list[str] | None = None,
    build_app_fn: Callable[[AppConfig], FastAPI] | None = None,
) -> None:
    """Parse arguments, build the application and run it."""
    args = parse_cli_args(argv)
    try:
        cfg = apply_cli_args(args)
    except ActionKitError as e:
        sys.stderr.write(f"\nERROR: {e.message}\n")
        sys.exit(2)

    _configure_logging(cfg)

    app: FastAPI
    try:
        app = build_app_fn(cfg) if build_app_fn else build_app(cfg)
    except ActionKitError as e:
        logging.error("Application startup failed: %s", e.message)
        sys.stderr.write(f"\nERROR: Failed to start: {e.message}\n")
        sys.exit(1)

    if is_port_in_use(cfg.host, cfg.port):
        error_msg = f"Port {cfg.port} is already in use."
        logging.error(error_msg)
        sys.stderr.write(f"\nERROR: {error_msg}\n")
        sys.exit(1)

    logging.info("Starting uvicorn on %s:%s", cfg.host, cfg.port)
    try:
        uvicorn.run(app, host=cfg.host, port=cfg.port, log_config=None)
    except Exception as e:
        logging.exception("Uvicorn failed to start: %s", e)
        raise


if __name__ == "__main__":
    main()
