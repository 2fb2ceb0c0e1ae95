"""Slack channel to repository bindings."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class ChannelMapping(QueryModel, table=True):
    """Per-channel routing and behaviour settings inside a workspace."""

    __tablename__ = "channel_mappings"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    repository_id: UUID | None = Field(
        default=None,
        foreign_key="repositories.id",
        index=True,
    )

    slack_channel_id: str = Field(index=True)
    slack_channel_name: str

    auto_extract_tasks: bool = Field(default=True)
    mention_required: bool = Field(default=True)
    default_priority: str | None = None

    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
