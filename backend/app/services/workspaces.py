"""Workspace registration and lookup by Slack team."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from app.core.logging import get_logger
from app.core.time import utcnow
from app.models.workspaces import Workspace

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify_team(team_name: str, team_id: str) -> str:
    """Build a workspace slug from the team name plus the team id's last 4 chars."""
    base = _SLUG_RE.sub("-", team_name.lower()).strip("-")
    suffix = team_id[-4:].lower()
    return f"{base}-{suffix}" if base else suffix


async def get_workspace_by_slack_team(
    session: AsyncSession,
    slack_team_id: str,
) -> Workspace | None:
    return await Workspace.objects.filter_by(slack_team_id=slack_team_id).first(session)


async def upsert_workspace(
    session: AsyncSession,
    *,
    slack_team_id: str,
    slack_team_name: str,
    slack_bot_user_id: str | None = None,
) -> Workspace:
    """Create the workspace for a Slack team, or refresh its metadata.

    The slug is fixed at creation so display-id prefixes never drift.
    """
    now = utcnow()
    workspace = await get_workspace_by_slack_team(session, slack_team_id)
    if workspace is not None:
        workspace.slack_team_name = slack_team_name
        workspace.slack_bot_user_id = slack_bot_user_id
        workspace.updated_at = now
        session.add(workspace)
        await session.commit()
        await session.refresh(workspace)
        logger.info("workspace.updated", extra={"workspace_id": str(workspace.id)})
        return workspace

    workspace = Workspace(
        name=slack_team_name,
        slug=slugify_team(slack_team_name, slack_team_id),
        slack_team_id=slack_team_id,
        slack_team_name=slack_team_name,
        slack_bot_user_id=slack_bot_user_id,
        ai_extraction_enabled=True,
        created_at=now,
        updated_at=now,
    )
    session.add(workspace)
    await session.commit()
    await session.refresh(workspace)
    logger.info(
        "workspace.created",
        extra={"workspace_id": str(workspace.id), "slack_team_id": slack_team_id},
    )
    return workspace


async def update_workspace_settings(
    session: AsyncSession,
    workspace: Workspace,
    *,
    updates: dict[str, object],
) -> Workspace:
    for key, value in updates.items():
        setattr(workspace, key, value)
    workspace.updated_at = utcnow()
    session.add(workspace)
    await session.commit()
    await session.refresh(workspace)
    return workspace
