"""Task activity and message payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, model_validator

from app.schemas.common import CamelModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

_CHANGE_KEYS = ("change_field", "old_value", "new_value")


class TaskChangeRead(CamelModel):
    change_field: str = Field(serialization_alias="field")
    old_value: str | None = None
    new_value: str | None = None


class TaskActivityRead(CamelModel):
    """Audit entry; a field change is nested under `changes`."""

    id: UUID
    task_id: UUID
    user_id: UUID | None = None
    activity_type: str
    changes: TaskChangeRead | None = None
    details: dict[str, object] | None = Field(default=None, serialization_alias="metadata")
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _nest_changes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            names = {*cls.model_fields, *_CHANGE_KEYS} - {"changes"}
            data = {name: getattr(data, name) for name in names if hasattr(data, name)}
        if "changes" in data:
            return data
        values = dict(data)
        change = {key: values.pop(key, None) for key in _CHANGE_KEYS}
        values["changes"] = change if change["change_field"] is not None else None
        return values


class MessageRead(CamelModel):
    id: UUID
    task_id: UUID
    author_id: UUID | None = None
    content: str
    content_type: str
    slack_message_ts: str | None = None
    ai_generated: dict[str, object] | None = None
    is_edited: bool
    edited_at: datetime | None = None
    created_at: datetime
