"""Marker bases for the two kinds of models in actionkit.

Configuration is validated by pydantic (``DomainModel``); request-scoped
values and results are plain dataclasses tagged with ``InternalDTO``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Base for pydantic configuration models; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    def __repr__(self) -> str:
        label = next(
            (
                f'{field}="{getattr(self, field)}"'
                for field in ("action", "path", "host")
                if getattr(self, field, None) is not None
            ),
            "",
        )
        return f"<{type(self).__name__} {label}>" if label else f"<{type(self).__name__}>"


class InternalDTO:
    """Marker for dataclass DTOs that never cross the validation boundary."""
