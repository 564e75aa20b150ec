"""
Result values returned by controller actions.

An action describes the HTTP response it wants by returning one of the
immutable result variants below instead of writing to a response stream.
The variant alone decides the status code and content type; the payload
fields only fill in body and headers. See
:mod:`actionkit.core.services.response_renderer` for the mapping.

Variants without payload can be returned either as an instance or as the
class itself (``return Ok`` and ``return Ok()`` are equivalent).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar
from xml.etree.ElementTree import Element

from actionkit.core.domain.action_reference import ActionReference, ActionTarget
from actionkit.core.interfaces.model_bases import InternalDTO


@dataclass(frozen=True)
class Result(InternalDTO):
    """Base class for every result variant."""

    status_code: ClassVar[int] = 200

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Ok(Result):
    """200 with an empty body."""


@dataclass(frozen=True)
class Html(Result):
    content: str = ""


@dataclass(frozen=True)
class Xml(Result):
    content: str | Element = ""


@dataclass(frozen=True)
class Text(Result):
    content: str = ""


@dataclass(frozen=True)
class Json(Result):
    """JSON body.

    Strings are treated as already-serialized JSON and sent verbatim; any
    other value is serialized when the response is rendered.
    """

    content: Any = None


@dataclass(frozen=True)
class Created(Result):
    status_code: ClassVar[int] = 201


@dataclass(frozen=True)
class Accepted(Result):
    status_code: ClassVar[int] = 202


@dataclass(frozen=True)
class NoContent(Result):
    status_code: ClassVar[int] = 204


@dataclass(frozen=True)
class Redirect(Result):
    """Redirect to an explicit URL; permanent (301) unless told otherwise."""

    status_code: ClassVar[int] = 301

    url: str = ""
    permanent: bool = True


@dataclass(frozen=True)
class ActionRedirect(Result):
    """Redirect to another action, described by name and arguments.

    The target action is never invoked: the result resolver asks the reverse
    router for its URL and stores it in ``url``.
    """

    status_code: ClassVar[int] = 302

    target: ActionReference | None = None
    url: str | None = None

    @classmethod
    def to(cls, target: ActionTarget, **arguments: Any) -> ActionRedirect:
        return cls(target=ActionReference.of(target, **arguments))


@dataclass(frozen=True)
class NotModified(Result):
    status_code: ClassVar[int] = 304

    etag: str | None = None


@dataclass(frozen=True)
class BadRequest(Result):
    status_code: ClassVar[int] = 400

    message: str | None = None


@dataclass(frozen=True)
class Unauthorized(Result):
    status_code: ClassVar[int] = 401

    realm: str | None = None


@dataclass(frozen=True)
class Forbidden(Result):
    status_code: ClassVar[int] = 403

    message: str | None = None


@dataclass(frozen=True)
class NotFound(Result):
    """404, optionally naming the missing resource or the unmatched route."""

    status_code: ClassVar[int] = 404

    what: str | None = None
    method: str | None = None
    path: str | None = None

    @classmethod
    def route(cls, method: str, path: str) -> NotFound:
        return cls(method=method.upper(), path=path)

    @property
    def message(self) -> str | None:
        if self.what:
            return self.what
        if self.method and self.path:
            return f"{self.method} {self.path}"
        return None


@dataclass(frozen=True)
class Error(Result):
    """Generic failure, 500 unless another code is given.

    Accepts ``Error("message")`` as well as ``Error(503, "message")``.
    """

    status_code: ClassVar[int] = 500

    code: int | str = 500
    message: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.code, str):
            if self.message is not None:
                raise TypeError("Error() takes a message only once")
            object.__setattr__(self, "message", self.code)
            object.__setattr__(self, "code", 500)
        if not 400 <= int(self.code) <= 599:
            raise ValueError(f"Error status must be 4xx or 5xx, got {self.code}")

    @property
    def http_status(self) -> int:
        return int(self.code)


@dataclass(frozen=True)
class Continue(Result):
    """Sentinel returned by interceptors to let the chain progress."""


CONTINUE = Continue()


def is_continue(value: Any) -> bool:
    """Return True for the Continue sentinel, its class, or ``None``."""
    return value is None or value is Continue or isinstance(value, Continue)
