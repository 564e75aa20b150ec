"""actionkit: controllers whose actions return result values."""

from actionkit.core.app.application_builder import build_app
from actionkit.core.controllers.base import (
    Controller,
    action,
    after,
    before,
    catch,
    finally_,
)
from actionkit.core.controllers.capabilities import (
    Capability,
    ETagSupport,
    RenderDefaults,
    RequireHeader,
)
from actionkit.core.controllers.registry import controller
from actionkit.core.domain.action_reference import ActionReference
from actionkit.core.domain.render_args import RenderArgs
from actionkit.core.domain.request_context import ActionContext, ActionRequest
from actionkit.core.domain.results import (
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

__version__ = "0.1.0"

__all__ = [
    "CONTINUE",
    "Accepted",
    "ActionContext",
    "ActionRedirect",
    "ActionReference",
    "ActionRequest",
    "BadRequest",
    "Capability",
    "Continue",
    "Controller",
    "Created",
    "ETagSupport",
    "Error",
    "Forbidden",
    "Html",
    "Json",
    "NoContent",
    "NotFound",
    "NotModified",
    "Ok",
    "Redirect",
    "RenderArgs",
    "RenderDefaults",
    "RequireHeader",
    "Result",
    "Text",
    "Unauthorized",
    "Xml",
    "action",
    "after",
    "before",
    "build_app",
    "catch",
    "controller",
    "finally_",
]
