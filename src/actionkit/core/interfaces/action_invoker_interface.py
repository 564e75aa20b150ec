from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from actionkit.core.domain.request_context import ActionRequest
from actionkit.core.domain.results import Result


class IActionInvoker(ABC):
    """Interface for running a controller action through its interceptor chain."""

    @abstractmethod
    async def invoke(
        self,
        action_id: str,
        request: ActionRequest,
        arguments: dict[str, Any] | None = None,
    ) -> Result:
        """Invoke an action and return the result that becomes the response.

        Args:
            action_id: ``"Controller.action"`` identifier
            request: The incoming request
            arguments: Already bound arguments; when None they are bound
                from the request

        Returns:
            Exactly one result value; never ``Continue``

        Raises:
            ActionNotFoundError: If the identifier is not registered
        """
