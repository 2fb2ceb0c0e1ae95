"""Task conversation messages."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel
from app.models.enums import MessageContentType, enum_check

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Message(QueryModel, table=True):
    """Comment on a task, optionally mirrored from a Slack thread reply."""

    __tablename__ = "messages"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint("task_id", "slack_message_ts", name="uq_messages_task_slack_ts"),
        enum_check("content_type", MessageContentType, name="ck_messages_content_type"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    author_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)

    content: str
    content_type: str = Field(default=MessageContentType.TEXT.value)

    slack_message_ts: str | None = None
    ai_generated: dict[str, object] | None = Field(default=None, sa_column=Column(JSON))

    is_edited: bool = Field(default=False)
    edited_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
