"""Dashboard task endpoints scoped to a workspace."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import AUTH_DEP, SESSION_DEP, TASK_DEP, WORKSPACE_DEP
from app.core.auth import AuthContext
from app.models.enums import TaskStatus
from app.models.tasks import Task
from app.models.workspaces import Workspace
from app.schemas.activity import MessageRead, TaskActivityRead
from app.schemas.errors import ErrorResponse
from app.schemas.tasks import (
    TaskAssign,
    TaskPriorityUpdate,
    TaskRead,
    TaskStatusUpdate,
    TaskSummaryRead,
)
from app.services.activity import list_activity
from app.services.tasks import (
    TaskOperationError,
    assign_task,
    change_priority,
    change_status,
    list_messages,
    list_tasks,
    summarize_tasks,
    unassign_task,
)

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(
    prefix="/workspaces/{workspace_id}/tasks",
    tags=["tasks"],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)

_ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "assignee_unlinked": status.HTTP_409_CONFLICT,
}


def _raise_for(error: TaskOperationError) -> NoReturn:
    raise HTTPException(status_code=_ERROR_STATUS[error.code], detail=error.message)


def _task_read(task: Task) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


@router.get("", response_model=list[TaskRead])
async def list_workspace_tasks(
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
    status_filter: TaskStatus | None = Query(default=None, alias="status"),
    repository_id: UUID | None = Query(default=None, alias="repositoryId"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[TaskRead]:
    """Newest tasks first, optionally filtered by status or repository."""
    tasks = await list_tasks(
        session,
        workspace_id=workspace.id,
        status=status_filter,
        repository_id=repository_id,
        limit=limit,
        offset=offset,
    )
    return [_task_read(task) for task in tasks]


@router.get("/summary", response_model=TaskSummaryRead)
async def get_task_summary(
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
    repository_id: UUID | None = Query(default=None, alias="repositoryId"),
) -> TaskSummaryRead:
    summary = await summarize_tasks(
        session,
        workspace_id=workspace.id,
        repository_id=repository_id,
    )
    return TaskSummaryRead.model_validate(summary, from_attributes=True)


@router.get("/{display_id}", response_model=TaskRead)
async def get_task(task: Task = TASK_DEP) -> TaskRead:
    return _task_read(task)


@router.post("/{display_id}/status", response_model=TaskRead)
async def update_task_status(
    display_id: str,
    payload: TaskStatusUpdate,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    result = await change_status(
        session,
        display_id=display_id,
        new_status=payload.status,
        actor_slack_id=auth.user.slack_user_id,
        workspace_id=workspace.id,
    )
    if not result.ok:
        _raise_for(result)
    return _task_read(result.task)


@router.post("/{display_id}/priority", response_model=TaskRead)
async def update_task_priority(
    display_id: str,
    payload: TaskPriorityUpdate,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    result = await change_priority(
        session,
        display_id=display_id,
        new_priority=payload.priority,
        actor_slack_id=auth.user.slack_user_id,
        workspace_id=workspace.id,
    )
    if not result.ok:
        _raise_for(result)
    return _task_read(result.task)


@router.post("/{display_id}/assign", response_model=TaskRead)
async def assign(
    display_id: str,
    payload: TaskAssign,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    """Assign to a Slack user; 409 when that Slack account is not linked yet."""
    result = await assign_task(
        session,
        display_id=display_id,
        assignee_slack_id=payload.assignee_slack_id,
        actor_slack_id=auth.user.slack_user_id,
        workspace_id=workspace.id,
    )
    if not result.ok:
        _raise_for(result)
    return _task_read(result.task)


@router.post("/{display_id}/unassign", response_model=TaskRead)
async def unassign(
    display_id: str,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    result = await unassign_task(
        session,
        display_id=display_id,
        actor_slack_id=auth.user.slack_user_id,
        workspace_id=workspace.id,
    )
    if not result.ok:
        _raise_for(result)
    return _task_read(result.task)


@router.get("/{display_id}/activity", response_model=list[TaskActivityRead])
async def get_task_activity(
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[TaskActivityRead]:
    entries = await list_activity(session, task_id=task.id, limit=limit, offset=offset)
    return [TaskActivityRead.model_validate(e, from_attributes=True) for e in entries]


@router.get("/{display_id}/messages", response_model=list[MessageRead])
async def get_task_messages(
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
) -> list[MessageRead]:
    messages = await list_messages(session, task_id=task.id)
    return [MessageRead.model_validate(m, from_attributes=True) for m in messages]
