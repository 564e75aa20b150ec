from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from actionkit.core.common.exceptions import ActionKitError


class DomainExceptionMiddleware(BaseHTTPMiddleware):
    """Translate domain exceptions that escape the dispatcher to HTTP responses.

    Action failures are already turned into ``Error`` results by the invoker;
    this only catches failures around it (request parsing, routing set-up).
    Unknown errors are mapped to HTTP 500 with a generic body to avoid
    leaking internals.
    """

    def __init__(self, app: Any) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logging.getLogger(__name__)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except ActionKitError as e:
            # 4xx -> warning; 5xx -> error
            if 400 <= int(getattr(e, "status_code", 500)) < 500:
                self._logger.warning("Domain error: %s", e, exc_info=True)
            else:
                self._logger.error("Domain error: %s", e, exc_info=True)
            return JSONResponse(
                content=e.to_dict(), status_code=int(getattr(e, "status_code", 500))
            )
        except Exception as e:
            self._logger.error("Unhandled exception: %s", e, exc_info=True)
            return JSONResponse(
                content={
                    "error": {
                        "message": "Internal Server Error",
                        "type": "InternalError",
                    }
                },
                status_code=500,
            )
