from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from actionkit.core.controllers.registry import clear_declared_controllers
from actionkit.core.domain.request_context import ActionRequest
from actionkit.core.services.response_renderer import ResponseRenderer
from actionkit.core.services.route_table import RouteTable


@pytest.fixture(autouse=True)
def _clean_declared_controllers() -> Iterator[None]:
    """Keep ``@controller`` declarations from leaking between tests."""
    clear_declared_controllers()
    yield
    clear_declared_controllers()


@pytest.fixture
def renderer() -> ResponseRenderer:
    return ResponseRenderer()


@pytest.fixture
def route_table() -> RouteTable:
    return RouteTable()


@pytest.fixture
def make_request() -> Callable[..., ActionRequest]:
    """Factory for action requests with sensible defaults."""

    def _make(method: str = "GET", path: str = "/", **kwargs: Any) -> ActionRequest:
        return ActionRequest(method=method, path=path, **kwargs)

    return _make


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    env = {
        "ACTIONKIT_HOST": "0.0.0.0",
        "ACTIONKIT_PORT": "9000",
        "ACTIONKIT_LOG_LEVEL": "debug",
        "ACTIONKIT_EXPOSE_ERROR_DETAILS": "true",
    }
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    return env


@pytest.fixture
def temp_config_path(tmp_path: Path) -> Path:
    """Create a minimal valid YAML config file and return its path."""
    import yaml

    cfg = {
        "host": "localhost",
        "port": 9000,
        "logging": {"level": "INFO"},
        "results": {"charset": "utf-8"},
        "routes": [
            {"method": "get", "path": "/articles/{id:int}", "action": "Articles.show"},
        ],
    }
    p = tmp_path / "app.config.yaml"
    with p.open("w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f, sort_keys=False)
    return p
