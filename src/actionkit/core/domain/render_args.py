from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from typing import Any

# Headers stored here are added to the rendered response
RESPONSE_HEADERS_KEY = "response.headers"
# Set when a content result should carry a strong ETag of its rendered body
ETAG_KEY = "response.etag"
# Charset the response body will be encoded with
CHARSET_KEY = "response.charset"


class RenderArgs(MutableMapping[str, Any]):
    """Request-scoped key/value bag shared by interceptors, the action and the renderer.

    One instance is created per invocation and dropped with it; nothing in
    here outlives the request.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def put(self, key: str, value: Any) -> RenderArgs:
        """Store a value and return the bag, for chaining."""
        self._values[key] = value
        return self

    def require(self, key: str) -> Any:
        try:
            return self._values[key]
        except KeyError:
            raise KeyError(f"Render argument '{key}' has not been set") from None

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"RenderArgs({sorted(self._values)})"
