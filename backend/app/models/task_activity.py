"""Append-only audit trail for task mutations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel
from app.models.enums import ActivityType, enum_check

RUNTIME_ANNOTATION_TYPES = (datetime,)


class TaskActivity(QueryModel, table=True):
    """One recorded action on a task, with an optional field change triple."""

    __tablename__ = "task_activity"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        enum_check("activity_type", ActivityType, name="ck_task_activity_activity_type"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    user_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    activity_type: str = Field(index=True)

    change_field: str | None = None
    old_value: str | None = None
    new_value: str | None = None

    # `metadata` is reserved on declarative models, hence the attribute name.
    details: dict[str, object] | None = Field(
        default=None,
        sa_column=Column("metadata", JSON),
    )
    created_at: datetime = Field(default_factory=utcnow)
