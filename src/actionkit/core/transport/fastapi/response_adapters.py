"""
FastAPI response adapters.

This module converts rendered :class:`ResponseEnvelope` objects to
Starlette responses.
"""

from __future__ import annotations

from starlette.responses import Response

from actionkit.core.domain.response_envelope import ResponseEnvelope


def to_fastapi_response(envelope: ResponseEnvelope, *, head: bool = False) -> Response:
    """Convert a response envelope to a Starlette response.

    Args:
        envelope: The rendered response
        head: Drop the body (HEAD requests) while keeping Content-Length

    Returns:
        The Starlette response
    """
    headers = dict(envelope.headers)
    # 204/304 must not carry a body
    body = b"" if envelope.status_code in (204, 304) else envelope.body

    response = Response(
        content=b"" if head else body,
        status_code=envelope.status_code,
        headers=headers,
        media_type=envelope.media_type,
    )
    if head and body:
        response.headers["content-length"] = str(len(body))
    return response
