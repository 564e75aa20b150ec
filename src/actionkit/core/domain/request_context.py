from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from actionkit.core.domain.render_args import RenderArgs
from actionkit.core.domain.results import Result
from actionkit.core.interfaces.model_bases import InternalDTO


@dataclass
class ActionRequest(InternalDTO):
    """Transport-agnostic view of the incoming request.

    Headers are lower-cased. ``params`` holds form or JSON body fields;
    ``original_request`` may carry the transport object for advanced hooks
    but core code should prefer the structured fields.
    """

    method: str
    path: str
    path_params: dict[str, Any] = field(default_factory=dict)
    query_params: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    client_host: str | None = None
    original_request: Any | None = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)


@dataclass
class ActionContext(InternalDTO):
    """State of a single action invocation.

    Created by the invoker for every request and handed to each interceptor.
    ``result`` is filled once the action (or a short-circuiting interceptor)
    produced one; ``exception`` holds the failure seen by catch and finally
    hooks.
    """

    request: ActionRequest
    controller: Any
    action_name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    render_args: RenderArgs = field(default_factory=RenderArgs)
    result: Result | None = None
    exception: BaseException | None = None
    short_circuited_by: str | None = None

    @property
    def action_id(self) -> str:
        return f"{self.controller.controller_name}.{self.action_name}"
