from __future__ import annotations

from abc import ABC, abstractmethod

from actionkit.core.domain.render_args import RenderArgs
from actionkit.core.domain.response_envelope import ResponseEnvelope
from actionkit.core.domain.results import Result


class IResponseRenderer(ABC):
    """Interface for turning result values into wire-level responses."""

    @abstractmethod
    def render(
        self, result: Result, render_args: RenderArgs | None = None
    ) -> ResponseEnvelope:
        """Render a result value.

        Args:
            result: The result produced by the action invoker
            render_args: The invocation's render arguments, if any

        Returns:
            The status, headers and body to send
        """

    @property
    def charset(self) -> str:
        """Charset text bodies are encoded with."""
        return "utf-8"
