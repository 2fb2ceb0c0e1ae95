"""Workspace model mapping one Slack team to a tenant."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Workspace(QueryModel, table=True):
    """Top-level tenant created from a Slack team installation."""

    __tablename__ = "workspaces"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    slug: str = Field(index=True)

    slack_team_id: str = Field(unique=True, index=True)
    slack_team_name: str
    slack_bot_user_id: str | None = None

    ai_extraction_enabled: bool = Field(default=True)
    default_task_priority: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
