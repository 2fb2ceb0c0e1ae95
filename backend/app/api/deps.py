"""Reusable FastAPI dependencies for auth and workspace/task loading.

Routers compose from these instead of repeating "load or 404" lookups.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, HTTPException, status

from app.core.auth import AuthContext, get_auth_context, get_auth_context_optional
from app.db.session import get_session
from app.models.tasks import Task
from app.models.workspaces import Workspace
from app.services.tasks import find_task_by_display_id

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

AUTH_DEP = Depends(get_auth_context)
AUTH_OPTIONAL_DEP = Depends(get_auth_context_optional)
SESSION_DEP = Depends(get_session)


async def get_workspace_or_404(
    workspace_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Workspace:
    """Load a workspace by id for an authenticated user or raise HTTP 404."""
    workspace = await Workspace.objects.by_id(workspace_id).first(session)
    if workspace is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found")
    return workspace


WORKSPACE_DEP = Depends(get_workspace_or_404)


async def get_task_or_404(
    display_id: str,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
) -> Task:
    """Load a workspace task by display id (any case) or raise HTTP 404."""
    task = await find_task_by_display_id(session, display_id, workspace_id=workspace.id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {display_id} not found",
        )
    return task


TASK_DEP = Depends(get_task_or_404)
