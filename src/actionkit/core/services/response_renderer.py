"""
Response rendering.

Maps every result variant to its status code, content type, headers and
body bytes. The mapping is fixed per variant:

    Ok 200, Html 200 text/html, Xml 200 text/xml, Text 200 text/plain,
    Json 200 application/json, Created 201, Accepted 202, NoContent 204,
    Redirect 301 (302 when not permanent), ActionRedirect 302,
    NotModified 304, BadRequest 400, Unauthorized 401, Forbidden 403,
    NotFound 404, Error 500 or its own code.

Variants other than the four content variants carry no content type; when
they have a message it is sent as a plain-text body.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from dataclasses import asdict, is_dataclass
from typing import Any
from xml.etree.ElementTree import Element, tostring

from actionkit.core.common.exceptions import ResultResolutionError
from actionkit.core.domain.render_args import (
    ETAG_KEY,
    RESPONSE_HEADERS_KEY,
    RenderArgs,
)
from actionkit.core.domain.response_envelope import ResponseEnvelope
from actionkit.core.domain.results import (
    Accepted,
    ActionRedirect,
    BadRequest,
    Continue,
    Created,
    Error,
    Forbidden,
    Html,
    Json,
    NoContent,
    NotFound,
    NotModified,
    Ok,
    Redirect,
    Result,
    Text,
    Unauthorized,
    Xml,
)
from actionkit.core.interfaces.response_renderer_interface import IResponseRenderer

logger = logging.getLogger(__name__)

HTML_MEDIA_TYPE = "text/html"
XML_MEDIA_TYPE = "text/xml"
TEXT_MEDIA_TYPE = "text/plain"
JSON_MEDIA_TYPE = "application/json"

CONTENT_RESULTS = (Html, Xml, Text, Json)


def strong_etag(body: bytes) -> str:
    """Return a quoted strong ETag for a response body."""
    return '"' + hashlib.sha1(body, usedforsecurity=False).hexdigest() + '"'


class ResponseRenderer(IResponseRenderer):
    """Default renderer producing :class:`ResponseEnvelope` objects."""

    def __init__(self, charset: str = "utf-8") -> None:
        self._charset = charset
        self._renderers: dict[type[Result], Callable[[Any], ResponseEnvelope]] = {
            Ok: self._status_only,
            Created: self._status_only,
            Accepted: self._status_only,
            NoContent: self._status_only,
            Html: lambda r: self._content(r.content, HTML_MEDIA_TYPE),
            Xml: lambda r: self._content(self._xml_text(r.content), XML_MEDIA_TYPE),
            Text: lambda r: self._content(r.content, TEXT_MEDIA_TYPE),
            Json: lambda r: self._content(self._json_text(r.content), JSON_MEDIA_TYPE),
            Redirect: self._redirect,
            ActionRedirect: self._action_redirect,
            NotModified: self._not_modified,
            BadRequest: lambda r: self._with_message(r.status_code, r.message),
            Unauthorized: self._unauthorized,
            Forbidden: lambda r: self._with_message(r.status_code, r.message),
            NotFound: lambda r: self._with_message(r.status_code, r.message),
            Error: lambda r: self._with_message(r.http_status, r.message),
        }

    @property
    def charset(self) -> str:
        return self._charset

    def render(
        self, result: Result, render_args: RenderArgs | None = None
    ) -> ResponseEnvelope:
        if isinstance(result, type) and issubclass(result, Result):
            result = result()
        if isinstance(result, Continue):
            raise ResultResolutionError(
                "Continue cannot be rendered; it only lets the interceptor chain progress"
            )
        renderer = self._lookup(type(result))
        if renderer is None:
            raise ResultResolutionError(
                f"No renderer for result type {type(result).__name__}",
                result_type=type(result).__name__,
            )

        envelope = renderer(result)
        if render_args is not None:
            if render_args.get(ETAG_KEY) and isinstance(result, CONTENT_RESULTS):
                envelope.headers.setdefault("ETag", strong_etag(envelope.body))
            extra = render_args.get(RESPONSE_HEADERS_KEY)
            if extra:
                for key, value in extra.items():
                    envelope.headers.setdefault(key, str(value))

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Rendered %s -> %s (%s, %d bytes)",
                result.name,
                envelope.status_code,
                envelope.media_type or "no content type",
                len(envelope.body),
            )
        return envelope

    def _lookup(
        self, result_type: type[Result]
    ) -> Callable[[Any], ResponseEnvelope] | None:
        # Subclasses of a variant render like the variant
        for klass in result_type.__mro__:
            renderer = self._renderers.get(klass)
            if renderer is not None:
                return renderer
        return None

    def _media_type(self, base: str) -> str:
        return f"{base}; charset={self._charset}"

    def _encode(self, text: str) -> bytes:
        return text.encode(self._charset)

    def _status_only(self, result: Result) -> ResponseEnvelope:
        return ResponseEnvelope(status_code=result.status_code)

    def _content(self, text: str, media_type: str) -> ResponseEnvelope:
        return ResponseEnvelope(
            status_code=200,
            body=self._encode(text),
            media_type=self._media_type(media_type),
        )

    def _with_message(self, status_code: int, message: str | None) -> ResponseEnvelope:
        if not message:
            return ResponseEnvelope(status_code=status_code)
        return ResponseEnvelope(
            status_code=status_code,
            body=self._encode(message),
            media_type=self._media_type(TEXT_MEDIA_TYPE),
        )

    def _redirect(self, result: Redirect) -> ResponseEnvelope:
        if not result.url:
            raise ResultResolutionError("Redirect requires a URL")
        return ResponseEnvelope(
            status_code=301 if result.permanent else 302,
            headers={"Location": result.url},
        )

    def _action_redirect(self, result: ActionRedirect) -> ResponseEnvelope:
        if result.url is None:
            target = str(result.target) if result.target else "<none>"
            raise ResultResolutionError(
                f"ActionRedirect to {target} was not resolved to a URL",
                target=target,
            )
        return ResponseEnvelope(
            status_code=result.status_code, headers={"Location": result.url}
        )

    def _not_modified(self, result: NotModified) -> ResponseEnvelope:
        headers = {"ETag": result.etag} if result.etag else {}
        return ResponseEnvelope(status_code=result.status_code, headers=headers)

    def _unauthorized(self, result: Unauthorized) -> ResponseEnvelope:
        headers = (
            {"WWW-Authenticate": f'Basic realm="{result.realm}"'}
            if result.realm
            else {}
        )
        return ResponseEnvelope(status_code=result.status_code, headers=headers)

    def _xml_text(self, content: str | Element) -> str:
        if isinstance(content, Element):
            return tostring(content, encoding="unicode")
        return content

    def _json_text(self, content: Any) -> str:
        if isinstance(content, str):
            return content
        return json.dumps(_prepare_json_content(content))


def _prepare_json_content(content: Any) -> Any:
    if hasattr(content, "model_dump"):
        return content.model_dump(mode="json")
    elif is_dataclass(content) and not isinstance(content, type):
        return asdict(content)
    elif isinstance(content, (list, tuple)):
        return [_prepare_json_content(item) for item in content]
    elif isinstance(content, dict):
        return {key: _prepare_json_content(value) for key, value in content.items()}
    return content
