from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ResponseEnvelope:
    """Transport-agnostic rendered response.

    Produced by the response renderer from a result value. Adapters in the
    transport layer map it to the framework-specific response type.
    """

    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    media_type: str | None = None

    @property
    def content_type(self) -> str | None:
        return self.media_type

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)
