"""Task creation, lifecycle transitions, assignment, and conversation helpers.

Lifecycle rules:
- new tasks always start in `backlog`;
- any status may move to any other status;
- entering `done` stamps `completed_at`, leaving `done` clears it;
- every successful mutation appends exactly one activity entry.

Lookup misses and unlinked assignees come back as `TaskOperationError`
values rather than exceptions; interactive callers branch on `result.ok`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sqlmodel import col

from app.core.logging import get_logger
from app.core.time import utcnow
from app.models.enums import (
    ActivityType,
    MessageContentType,
    TaskPriority,
    TaskSourceType,
    TaskStatus,
    TaskType,
)
from app.models.messages import Message
from app.models.tasks import Task
from app.services.activity import record_activity
from app.services.channel_mappings import get_channel_mapping
from app.services.counters import allocate_display_id, normalize_display_id
from app.services.identity import get_user_by_slack_id

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.models.users import User
    from app.models.workspaces import Workspace

logger = get_logger(__name__)

TaskErrorCode = Literal["not_found", "assignee_unlinked"]
SUMMARY_SAMPLE_SIZE = 5
SUMMARY_DONE_SAMPLE_SIZE = 3


@dataclass(frozen=True)
class TaskSource:
    """Where a task came from: Slack thread coordinates or a GitHub issue."""

    source_type: TaskSourceType = TaskSourceType.SLACK
    slack_channel_id: str | None = None
    slack_channel_name: str | None = None
    slack_message_ts: str | None = None
    slack_thread_ts: str | None = None
    slack_permalink: str | None = None
    github_issue_number: int | None = None
    github_issue_url: str | None = None


@dataclass(frozen=True)
class TaskOperationError:
    """Reported failure of an interactive task operation."""

    code: TaskErrorCode
    message: str
    ok: Literal[False] = False


@dataclass(frozen=True)
class StatusChange:
    task: Task
    old_status: TaskStatus
    new_status: TaskStatus
    ok: Literal[True] = True


@dataclass(frozen=True)
class AssignmentChange:
    task: Task
    assignee: User | None
    previous_assignee_id: UUID | None
    ok: Literal[True] = True


@dataclass(frozen=True)
class PriorityChange:
    task: Task
    old_priority: TaskPriority
    new_priority: TaskPriority
    ok: Literal[True] = True


StatusChangeResult = StatusChange | TaskOperationError
AssignmentResult = AssignmentChange | TaskOperationError
PriorityChangeResult = PriorityChange | TaskOperationError


@dataclass(frozen=True)
class TaskBrief:
    display_id: str
    title: str
    priority: str


@dataclass
class StatusBucket:
    count: int = 0
    tasks: list[TaskBrief] = field(default_factory=list)


@dataclass
class TaskSummary:
    """Counts of non-cancelled tasks grouped by status and priority."""

    total: int
    active_count: int
    by_status: dict[str, StatusBucket]
    by_priority: dict[str, int]


def _task_not_found(display_id: str) -> TaskOperationError:
    return TaskOperationError(code="not_found", message=f"Task {display_id} not found")


def apply_status_transition(task: Task, new_status: TaskStatus, *, now: datetime) -> TaskStatus:
    """Move `task` to `new_status` in memory and return the previous status."""
    old_status = TaskStatus(task.status)
    task.status = new_status.value
    task.updated_at = now
    if new_status is TaskStatus.DONE:
        if old_status is not TaskStatus.DONE or task.completed_at is None:
            task.completed_at = now
    else:
        task.completed_at = None
    return old_status


async def find_task_by_display_id(
    session: AsyncSession,
    display_id: str,
    *,
    workspace_id: UUID | None = None,
    for_update: bool = False,
) -> Task | None:
    """Look a task up by display id (case-insensitive), optionally per workspace."""
    query = Task.objects.filter_by(display_id=normalize_display_id(display_id))
    if workspace_id is not None:
        query = query.filter_by(workspace_id=workspace_id)
    if for_update:
        query = query.for_update()
    return await query.first(session)


async def find_task_by_slack_thread(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    slack_channel_id: str,
    slack_thread_ts: str,
) -> Task | None:
    return await Task.objects.filter_by(
        workspace_id=workspace_id,
        slack_channel_id=slack_channel_id,
        slack_thread_ts=slack_thread_ts,
    ).first(session)


async def find_task_by_slack_message(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    slack_channel_id: str,
    slack_message_ts: str,
) -> Task | None:
    return await Task.objects.filter_by(
        workspace_id=workspace_id,
        slack_channel_id=slack_channel_id,
        slack_message_ts=slack_message_ts,
    ).first(session)


async def create_task(
    session: AsyncSession,
    *,
    workspace: Workspace,
    title: str,
    description: str | None,
    priority: TaskPriority,
    task_type: TaskType,
    source: TaskSource,
    reporter_slack_id: str | None = None,
    repository_id: UUID | None = None,
    ai_extraction: dict[str, object] | None = None,
    code_context: dict[str, object] | None = None,
) -> Task:
    """Allocate a display id, insert the task in `backlog`, log `created`."""
    priority = TaskPriority(priority)
    task_type = TaskType(task_type)
    task_number, display_id = await allocate_display_id(session, workspace)
    creator = await get_user_by_slack_id(session, reporter_slack_id)

    now = utcnow()
    task = Task(
        workspace_id=workspace.id,
        repository_id=repository_id,
        task_number=task_number,
        display_id=display_id,
        title=title,
        description=description,
        status=TaskStatus.BACKLOG.value,
        priority=priority.value,
        task_type=task_type.value,
        created_by_id=creator.id if creator else None,
        source_type=source.source_type.value,
        slack_channel_id=source.slack_channel_id,
        slack_channel_name=source.slack_channel_name,
        slack_message_ts=source.slack_message_ts,
        slack_thread_ts=source.slack_thread_ts,
        slack_permalink=source.slack_permalink,
        github_issue_number=source.github_issue_number,
        github_issue_url=source.github_issue_url,
        code_context=code_context,
        ai_extraction=ai_extraction,
        labels=[],
        created_at=now,
        updated_at=now,
    )
    session.add(task)
    await session.flush()

    await record_activity(
        session,
        task_id=task.id,
        activity_type=ActivityType.CREATED,
        user_id=creator.id if creator else None,
        details={"source": source.source_type.value},
        commit=False,
    )
    await session.commit()
    await session.refresh(task)
    logger.info(
        "task.created",
        extra={
            "task_id": str(task.id),
            "display_id": task.display_id,
            "workspace_id": str(workspace.id),
            "creator_linked": creator is not None,
        },
    )
    return task


async def change_status(
    session: AsyncSession,
    *,
    display_id: str,
    new_status: TaskStatus,
    actor_slack_id: str | None = None,
    workspace_id: UUID | None = None,
) -> StatusChangeResult:
    """Move a task to `new_status` and record the transition."""
    new_status = TaskStatus(new_status)
    task = await find_task_by_display_id(
        session,
        display_id,
        workspace_id=workspace_id,
        for_update=True,
    )
    if task is None:
        return _task_not_found(display_id)

    actor = await get_user_by_slack_id(session, actor_slack_id)
    old_status = apply_status_transition(task, new_status, now=utcnow())
    session.add(task)
    await record_activity(
        session,
        task_id=task.id,
        activity_type=ActivityType.STATUS_CHANGED,
        user_id=actor.id if actor else None,
        field="status",
        old_value=old_status.value,
        new_value=new_status.value,
        commit=False,
    )
    await session.commit()
    await session.refresh(task)
    logger.info(
        "task.status_changed",
        extra={
            "display_id": task.display_id,
            "old_status": old_status.value,
            "new_status": new_status.value,
        },
    )
    return StatusChange(task=task, old_status=old_status, new_status=new_status)


async def assign_task(
    session: AsyncSession,
    *,
    display_id: str,
    assignee_slack_id: str,
    actor_slack_id: str | None = None,
    workspace_id: UUID | None = None,
) -> AssignmentResult:
    """Assign a task to the user linked to `assignee_slack_id`.

    An unlinked assignee leaves the task and the activity log untouched.
    """
    task = await find_task_by_display_id(
        session,
        display_id,
        workspace_id=workspace_id,
        for_update=True,
    )
    if task is None:
        return _task_not_found(display_id)

    assignee = await get_user_by_slack_id(session, assignee_slack_id)
    if assignee is None:
        return TaskOperationError(
            code="assignee_unlinked",
            message="User not found. They may need to link their Slack account first.",
        )

    actor = await get_user_by_slack_id(session, actor_slack_id)
    previous_assignee_id = task.assignee_id
    task.assignee_id = assignee.id
    task.updated_at = utcnow()
    session.add(task)
    await record_activity(
        session,
        task_id=task.id,
        activity_type=ActivityType.ASSIGNED,
        user_id=actor.id if actor else None,
        field="assignee_id",
        old_value=str(previous_assignee_id) if previous_assignee_id else None,
        new_value=str(assignee.id),
        commit=False,
    )
    await session.commit()
    await session.refresh(task)
    return AssignmentChange(task=task, assignee=assignee, previous_assignee_id=previous_assignee_id)


async def unassign_task(
    session: AsyncSession,
    *,
    display_id: str,
    actor_slack_id: str | None = None,
    workspace_id: UUID | None = None,
) -> AssignmentResult:
    """Clear the assignee of a task."""
    task = await find_task_by_display_id(
        session,
        display_id,
        workspace_id=workspace_id,
        for_update=True,
    )
    if task is None:
        return _task_not_found(display_id)

    actor = await get_user_by_slack_id(session, actor_slack_id)
    previous_assignee_id = task.assignee_id
    task.assignee_id = None
    task.updated_at = utcnow()
    session.add(task)
    await record_activity(
        session,
        task_id=task.id,
        activity_type=ActivityType.UNASSIGNED,
        user_id=actor.id if actor else None,
        field="assignee_id",
        old_value=str(previous_assignee_id) if previous_assignee_id else None,
        new_value=None,
        commit=False,
    )
    await session.commit()
    await session.refresh(task)
    return AssignmentChange(task=task, assignee=None, previous_assignee_id=previous_assignee_id)


async def change_priority(
    session: AsyncSession,
    *,
    display_id: str,
    new_priority: TaskPriority,
    actor_slack_id: str | None = None,
    workspace_id: UUID | None = None,
) -> PriorityChangeResult:
    new_priority = TaskPriority(new_priority)
    task = await find_task_by_display_id(
        session,
        display_id,
        workspace_id=workspace_id,
        for_update=True,
    )
    if task is None:
        return _task_not_found(display_id)

    actor = await get_user_by_slack_id(session, actor_slack_id)
    old_priority = TaskPriority(task.priority)
    task.priority = new_priority.value
    task.updated_at = utcnow()
    session.add(task)
    await record_activity(
        session,
        task_id=task.id,
        activity_type=ActivityType.PRIORITY_CHANGED,
        user_id=actor.id if actor else None,
        field="priority",
        old_value=old_priority.value,
        new_value=new_priority.value,
        commit=False,
    )
    await session.commit()
    await session.refresh(task)
    return PriorityChange(task=task, old_priority=old_priority, new_priority=new_priority)


async def add_message(
    session: AsyncSession,
    *,
    task: Task,
    content: str,
    author_slack_id: str | None = None,
    slack_message_ts: str | None = None,
    content_type: MessageContentType = MessageContentType.TEXT,
) -> Message | None:
    """Append a message to a task; returns None for an already-synced Slack message."""
    if slack_message_ts is not None:
        existing = await Message.objects.filter_by(
            task_id=task.id,
            slack_message_ts=slack_message_ts,
        ).first(session)
        if existing is not None:
            return None

    author = await get_user_by_slack_id(session, author_slack_id)
    message = Message(
        task_id=task.id,
        author_id=author.id if author else None,
        content=content,
        content_type=content_type.value,
        slack_message_ts=slack_message_ts,
        is_edited=False,
        created_at=utcnow(),
    )
    session.add(message)
    await session.commit()
    await session.refresh(message)
    return message


async def list_messages(session: AsyncSession, *, task_id: UUID) -> list[Message]:
    return await (
        Message.objects.filter_by(task_id=task_id)
        .order_by(col(Message.created_at).asc())
        .all(session)
    )


async def list_tasks(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    status: TaskStatus | None = None,
    repository_id: UUID | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Task]:
    """Newest-first task listing for the dashboard."""
    query = Task.objects.filter_by(workspace_id=workspace_id)
    if status is not None:
        query = query.filter_by(status=status.value)
    if repository_id is not None:
        query = query.filter_by(repository_id=repository_id)
    return await (
        query.order_by(col(Task.task_number).desc()).offset(offset).limit(limit).all(session)
    )


async def summarize_tasks(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    repository_id: UUID | None = None,
) -> TaskSummary:
    """Summarize non-cancelled tasks of a workspace, or of one repository."""
    if repository_id is not None:
        query = Task.objects.filter_by(repository_id=repository_id)
    else:
        query = Task.objects.filter_by(workspace_id=workspace_id)
    tasks = await (
        query.filter(col(Task.status) != TaskStatus.CANCELLED.value)
        .order_by(col(Task.task_number).desc())
        .all(session)
    )

    by_status: dict[str, StatusBucket] = {}
    for status in TaskStatus:
        if status is TaskStatus.CANCELLED:
            continue
        sample_size = (
            SUMMARY_DONE_SAMPLE_SIZE if status is TaskStatus.DONE else SUMMARY_SAMPLE_SIZE
        )
        matching = [task for task in tasks if task.status == status.value]
        by_status[status.value] = StatusBucket(
            count=len(matching),
            tasks=[
                TaskBrief(display_id=task.display_id, title=task.title, priority=task.priority)
                for task in matching[:sample_size]
            ],
        )

    by_priority = {
        priority.value: sum(1 for task in tasks if task.priority == priority.value)
        for priority in TaskPriority
    }
    return TaskSummary(
        total=len(tasks),
        active_count=sum(1 for task in tasks if task.status != TaskStatus.DONE.value),
        by_status=by_status,
        by_priority=by_priority,
    )


async def summarize_channel_tasks(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    slack_channel_id: str,
) -> TaskSummary:
    """Summary scoped to the repository mapped to a channel, else the workspace."""
    mapping = await get_channel_mapping(session, slack_channel_id, workspace_id=workspace_id)
    return await summarize_tasks(
        session,
        workspace_id=workspace_id,
        repository_id=mapping.repository_id if mapping else None,
    )
