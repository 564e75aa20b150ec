# Domain package

from .results import (
    CONTINUE,
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

__all__ = [
    "CONTINUE",
    "Accepted",
    "ActionRedirect",
    "BadRequest",
    "Continue",
    "Created",
    "Error",
    "Forbidden",
    "Html",
    "Json",
    "NoContent",
    "NotFound",
    "NotModified",
    "Ok",
    "Redirect",
    "Result",
    "Text",
    "Unauthorized",
    "Xml",
]
