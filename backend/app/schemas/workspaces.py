"""Workspace install and read payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.models.enums import TaskPriority
from app.schemas.common import CamelModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class WorkspaceInstall(CamelModel):
    """Slack team details captured when the app is installed."""

    slack_team_id: str = Field(min_length=1, examples=["T024BE7LD"])
    slack_team_name: str = Field(min_length=1, examples=["Acme Engineering"])
    slack_bot_user_id: str | None = Field(default=None, examples=["U0BOT1234"])


class WorkspaceUpdate(CamelModel):
    ai_extraction_enabled: bool | None = None
    default_task_priority: TaskPriority | None = None


class WorkspaceRead(CamelModel):
    id: UUID
    name: str
    slug: str
    slack_team_id: str
    slack_team_name: str
    slack_bot_user_id: str | None = None
    ai_extraction_enabled: bool
    default_task_priority: str | None = None
    created_at: datetime
    updated_at: datetime


class ChannelMappingUpsert(CamelModel):
    """Channel binding; the repository is only applied when the binding is new."""

    slack_channel_name: str = Field(min_length=1, examples=["bugs"])
    repository_id: UUID | None = None
    auto_extract_tasks: bool = True
    mention_required: bool = True
    default_priority: TaskPriority | None = None


class ChannelMappingRead(CamelModel):
    id: UUID
    workspace_id: UUID
    repository_id: UUID | None = None
    slack_channel_id: str
    slack_channel_name: str
    auto_extract_tasks: bool
    mention_required: bool
    default_priority: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
