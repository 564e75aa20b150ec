"""
FastAPI request adapters.

This module contains adapters for converting FastAPI request objects
to the transport-agnostic :class:`ActionRequest`.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request

from actionkit.core.common.exceptions import ArgumentBindingError
from actionkit.core.domain.request_context import ActionRequest

logger = logging.getLogger(__name__)


def _multi_to_dict(items: list[tuple[str, str]]) -> dict[str, Any]:
    """Collapse repeated keys into lists, keep single values as strings."""
    result: dict[str, Any] = {}
    for key, value in items:
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value
    return result


async def _read_body_params(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if request.method in ("GET", "HEAD", "OPTIONS") or not content_type:
        return {}

    body = await request.body()
    if not body:
        return {}

    if content_type == "application/json":
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise ArgumentBindingError(f"Malformed JSON body: {e}") from e
        if isinstance(payload, dict):
            return payload
        # Non-object JSON bodies are exposed under a single key
        return {"body": payload}

    if content_type == "application/x-www-form-urlencoded":
        return _multi_to_dict(parse_qsl(body.decode("latin-1"), keep_blank_values=True))

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Body of type %s not bound to parameters", content_type)
    return {}


async def fastapi_to_action_request(
    request: Request, attach_original: bool = True
) -> ActionRequest:
    """Convert a FastAPI request to an action request.

    Args:
        request: The FastAPI request object
        attach_original: Whether to attach the original request object

    Returns:
        The action request; path parameters are filled in after routing

    Raises:
        ArgumentBindingError: If the body claims to be JSON but is not.
    """
    headers = {name.lower(): value for name, value in request.headers.items()}

    return ActionRequest(
        method=request.method,
        path=request.url.path,
        query_params=_multi_to_dict(list(request.query_params.multi_items())),
        params=await _read_body_params(request),
        headers=headers,
        client_host=request.client.host if request.client else None,
        original_request=request if attach_original else None,
    )
