"""Task payloads for the dashboard API."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, model_validator

from app.models.enums import ExecutionStatus, TaskPriority, TaskSourceType, TaskStatus
from app.schemas.common import CamelModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

_SOURCE_KEYS = (
    "slack_channel_id",
    "slack_channel_name",
    "slack_message_ts",
    "slack_thread_ts",
    "slack_permalink",
    "github_issue_number",
    "github_issue_url",
)


class TaskSourceRead(CamelModel):
    """Where the task came from."""

    type: TaskSourceType
    slack_channel_id: str | None = None
    slack_channel_name: str | None = None
    slack_message_ts: str | None = None
    slack_thread_ts: str | None = None
    slack_permalink: str | None = None
    github_issue_number: int | None = None
    github_issue_url: str | None = None


class ClaudeCodeExecutionRead(CamelModel):
    """Progress of an automated code-fix run for a task."""

    status: ExecutionStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None
    pull_request_url: str | None = None
    branch_name: str | None = None
    commit_sha: str | None = None
    error_message: str | None = None


class TaskRead(CamelModel):
    id: UUID
    workspace_id: UUID
    repository_id: UUID | None = None
    task_number: int
    display_id: str
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    task_type: str
    assignee_id: UUID | None = None
    created_by_id: UUID | None = None
    source: TaskSourceRead
    code_context: dict[str, object] | None = None
    ai_extraction: dict[str, object] | None = None
    claude_code_execution: ClaudeCodeExecutionRead | None = None
    labels: list[str] = Field(default_factory=list)
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _nest_source(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            names = {*cls.model_fields, *_SOURCE_KEYS, "source_type"} - {"source"}
            data = {name: getattr(data, name) for name in names if hasattr(data, name)}
        if "source" in data:
            return data
        values = dict(data)
        source = {key: values.pop(key, None) for key in _SOURCE_KEYS}
        source["type"] = values.pop("source_type", TaskSourceType.SLACK.value)
        values["source"] = source
        return values


class TaskStatusUpdate(CamelModel):
    status: TaskStatus


class TaskPriorityUpdate(CamelModel):
    priority: TaskPriority


class TaskAssign(CamelModel):
    """Assign to the user linked to a Slack account."""

    assignee_slack_id: str = Field(min_length=1, examples=["U012AB3CD"])


class TaskBriefRead(CamelModel):
    display_id: str
    title: str
    priority: str


class StatusBucketRead(CamelModel):
    count: int
    tasks: list[TaskBriefRead]


class TaskSummaryRead(CamelModel):
    """Non-cancelled tasks grouped by status and priority."""

    total: int
    active_count: int
    by_status: dict[str, StatusBucketRead]
    by_priority: dict[str, int]
