"""Task model: the tracked work item and its Slack/GitHub provenance."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, Index, UniqueConstraint
from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel
from app.models.enums import TaskPriority, TaskSourceType, TaskStatus, TaskType, enum_check

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Task(QueryModel, table=True):
    """Workspace-scoped task with a stable human-readable display id."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint("workspace_id", "task_number", name="uq_tasks_workspace_number"),
        UniqueConstraint("workspace_id", "display_id", name="uq_tasks_workspace_display_id"),
        Index("ix_tasks_slack_thread", "workspace_id", "slack_channel_id", "slack_thread_ts"),
        enum_check("status", TaskStatus, name="ck_tasks_status"),
        enum_check("priority", TaskPriority, name="ck_tasks_priority"),
        enum_check("task_type", TaskType, name="ck_tasks_task_type"),
        enum_check("source_type", TaskSourceType, name="ck_tasks_source_type"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    repository_id: UUID | None = Field(
        default=None,
        foreign_key="repositories.id",
        index=True,
    )

    task_number: int
    display_id: str = Field(index=True)

    title: str
    description: str | None = None

    status: str = Field(default=TaskStatus.BACKLOG.value, index=True)
    priority: str = Field(default=TaskPriority.MEDIUM.value, index=True)
    task_type: str = Field(default=TaskType.TASK.value)

    assignee_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    created_by_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)

    # Source tracking
    source_type: str = Field(default=TaskSourceType.SLACK.value)
    slack_channel_id: str | None = None
    slack_channel_name: str | None = None
    slack_message_ts: str | None = None
    slack_thread_ts: str | None = None
    slack_permalink: str | None = None
    github_issue_number: int | None = None
    github_issue_url: str | None = None

    code_context: dict[str, object] | None = Field(default=None, sa_column=Column(JSON))
    ai_extraction: dict[str, object] | None = Field(default=None, sa_column=Column(JSON))
    claude_code_execution: dict[str, object] | None = Field(
        default=None,
        sa_column=Column(JSON),
    )

    labels: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
