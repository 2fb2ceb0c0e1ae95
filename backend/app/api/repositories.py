"""Repository registration endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from app.api.deps import AUTH_DEP, SESSION_DEP, WORKSPACE_DEP
from app.core.auth import AuthContext
from app.models.workspaces import Workspace
from app.schemas.errors import ErrorResponse
from app.schemas.repositories import (
    RepositoryCreate,
    RepositoryRead,
    RepositorySync,
    RepositoryUpdate,
)
from app.services.repositories import (
    RepositoryResult,
    create_repository,
    deactivate_repository,
    list_repositories,
    mark_repository_synced,
    update_repository,
)

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(
    tags=["repositories"],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)

_ERROR_STATUS = {
    "duplicate_repository": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
}


def _unwrap(result: RepositoryResult) -> RepositoryRead:
    if not result.ok or result.repository is None:
        raise HTTPException(
            status_code=_ERROR_STATUS.get(result.error or "", status.HTTP_400_BAD_REQUEST),
            detail=result.message,
        )
    return RepositoryRead.model_validate(result.repository, from_attributes=True)


@router.get("/workspaces/{workspace_id}/repositories", response_model=list[RepositoryRead])
async def list_workspace_repositories(
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
) -> list[RepositoryRead]:
    repositories = await list_repositories(session, workspace.id)
    return [RepositoryRead.model_validate(r, from_attributes=True) for r in repositories]


@router.post(
    "/workspaces/{workspace_id}/repositories",
    response_model=RepositoryRead,
    status_code=status.HTTP_201_CREATED,
)
async def link_repository(
    payload: RepositoryCreate,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
) -> RepositoryRead:
    """Link a GitHub repository; linking the same GitHub id twice is a 409."""
    result = await create_repository(
        session,
        workspace_id=workspace.id,
        name=payload.name,
        full_name=payload.full_name,
        clone_url=payload.clone_url,
        default_branch=payload.default_branch,
        github_id=payload.github_id,
        github_node_id=payload.github_node_id,
    )
    return _unwrap(result)


@router.patch("/repositories/{repository_id}", response_model=RepositoryRead)
async def patch_repository(
    repository_id: UUID,
    payload: RepositoryUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> RepositoryRead:
    updates = payload.model_dump(exclude_unset=True)
    return _unwrap(await update_repository(session, repository_id, updates=updates))


@router.delete("/repositories/{repository_id}", response_model=RepositoryRead)
async def remove_repository(
    repository_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> RepositoryRead:
    """Soft delete; the repository stays referenced by its existing tasks."""
    return _unwrap(await deactivate_repository(session, repository_id))


@router.post("/repositories/{repository_id}/sync", response_model=RepositoryRead)
async def sync_repository(
    repository_id: UUID,
    payload: RepositorySync | None = None,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> RepositoryRead:
    result = await mark_repository_synced(
        session,
        repository_id,
        default_branch=payload.default_branch if payload else None,
    )
    return _unwrap(result)
