"""Workspace install, settings, and channel binding endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, status

from app.api.deps import AUTH_DEP, SESSION_DEP, WORKSPACE_DEP
from app.core.auth import AuthContext
from app.models.workspaces import Workspace
from app.schemas.errors import ErrorResponse
from app.schemas.workspaces import (
    ChannelMappingRead,
    ChannelMappingUpsert,
    WorkspaceInstall,
    WorkspaceRead,
    WorkspaceUpdate,
)
from app.services.channel_mappings import (
    deactivate_channel_mapping,
    get_channel_mapping,
    upsert_channel_mapping,
)
from app.services.workspaces import update_workspace_settings, upsert_workspace

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(
    prefix="/workspaces",
    tags=["workspaces"],
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
)


@router.post("", response_model=WorkspaceRead)
async def install_workspace(
    payload: WorkspaceInstall,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> WorkspaceRead:
    """Register a Slack team, or refresh its metadata when already installed."""
    workspace = await upsert_workspace(
        session,
        slack_team_id=payload.slack_team_id,
        slack_team_name=payload.slack_team_name,
        slack_bot_user_id=payload.slack_bot_user_id,
    )
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.get("/{workspace_id}", response_model=WorkspaceRead)
async def get_workspace(workspace: Workspace = WORKSPACE_DEP) -> WorkspaceRead:
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.patch("/{workspace_id}", response_model=WorkspaceRead)
async def update_workspace(
    payload: WorkspaceUpdate,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
) -> WorkspaceRead:
    updates = payload.model_dump(exclude_unset=True, mode="json")
    workspace = await update_workspace_settings(session, workspace, updates=updates)
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.put("/{workspace_id}/channels/{slack_channel_id}", response_model=ChannelMappingRead)
async def put_channel_mapping(
    slack_channel_id: str,
    payload: ChannelMappingUpsert,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
) -> ChannelMappingRead:
    mapping = await upsert_channel_mapping(
        session,
        workspace_id=workspace.id,
        slack_channel_id=slack_channel_id,
        slack_channel_name=payload.slack_channel_name,
        repository_id=payload.repository_id,
        auto_extract_tasks=payload.auto_extract_tasks,
        mention_required=payload.mention_required,
        default_priority=payload.default_priority.value if payload.default_priority else None,
    )
    return ChannelMappingRead.model_validate(mapping, from_attributes=True)


@router.delete(
    "/{workspace_id}/channels/{slack_channel_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_channel_mapping(
    slack_channel_id: str,
    workspace: Workspace = WORKSPACE_DEP,
    session: AsyncSession = SESSION_DEP,
) -> None:
    mapping = await get_channel_mapping(session, slack_channel_id, workspace_id=workspace.id)
    if mapping is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not mapped")
    await deactivate_channel_mapping(session, mapping)
