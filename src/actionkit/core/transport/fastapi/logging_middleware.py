from __future__ import annotations

import time
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from actionkit.core.common.logging_utils import get_logger, redact_dict


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and its response status as structured events."""

    def __init__(self, app: Any, log_headers: bool = False) -> None:  # type: ignore[override]
        super().__init__(app)
        self._log_headers = log_headers
        self.logger = get_logger("api")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        fields: dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
            "client": client,
        }
        if self._log_headers:
            fields["headers"] = redact_dict(dict(request.headers))
        self.logger.info("Request received", **fields)

        response = await call_next(request)

        self.logger.info(
            "Response sent",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response
