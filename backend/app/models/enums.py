"""Closed value sets shared by task-tracking models and schemas."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import CheckConstraint


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Task urgency levels."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskType(str, Enum):
    """Kind of work a task represents."""

    BUG = "bug"
    FEATURE = "feature"
    IMPROVEMENT = "improvement"
    TASK = "task"
    QUESTION = "question"


class TaskSourceType(str, Enum):
    """Where a task originated."""

    SLACK = "slack"
    MANUAL = "manual"
    GITHUB = "github"
    API = "api"


class MessageContentType(str, Enum):
    """Rendering hint for task messages."""

    TEXT = "text"
    MARKDOWN = "markdown"
    SYSTEM = "system"


class ActivityType(str, Enum):
    """Audit trail entry kinds."""

    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    PRIORITY_CHANGED = "priority_changed"
    REPO_LINKED = "repo_linked"
    COMMENT_ADDED = "comment_added"
    CLAUDE_CODE_STARTED = "claude_code_started"
    CLAUDE_CODE_COMPLETED = "claude_code_completed"
    PR_CREATED = "pr_created"
    PR_MERGED = "pr_merged"


class ExecutionStatus(str, Enum):
    """State of an automated code-fix run attached to a task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CounterType(str, Enum):
    """Per-workspace counters."""

    TASK_NUMBER = "task_number"


def enum_check(column: str, enum_cls: type[Enum], *, name: str) -> CheckConstraint:
    """Build a CHECK constraint restricting `column` to the enum's values."""
    allowed = ", ".join(f"'{member.value}'" for member in enum_cls)
    return CheckConstraint(f"{column} IN ({allowed})", name=name)
