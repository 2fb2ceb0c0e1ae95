"""Channel mapping lookup and settings management."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.core.time import utcnow
from app.models.channel_mappings import ChannelMapping

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


async def get_channel_mapping(
    session: AsyncSession,
    slack_channel_id: str,
    *,
    workspace_id: UUID | None = None,
) -> ChannelMapping | None:
    """Return the active mapping for a Slack channel, if one exists."""
    query = ChannelMapping.objects.filter_by(slack_channel_id=slack_channel_id, is_active=True)
    if workspace_id is not None:
        query = query.filter_by(workspace_id=workspace_id)
    return await query.first(session)


async def upsert_channel_mapping(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    slack_channel_id: str,
    slack_channel_name: str,
    repository_id: UUID | None = None,
    auto_extract_tasks: bool = True,
    mention_required: bool = True,
    default_priority: str | None = None,
) -> ChannelMapping:
    """Bind a channel (once) and update its behaviour flags on later calls.

    The repository binding is set at creation and left untouched afterwards.
    """
    now = utcnow()
    mapping = await get_channel_mapping(session, slack_channel_id, workspace_id=workspace_id)
    if mapping is None:
        mapping = ChannelMapping(
            workspace_id=workspace_id,
            repository_id=repository_id,
            slack_channel_id=slack_channel_id,
            slack_channel_name=slack_channel_name,
            created_at=now,
        )
    mapping.slack_channel_name = slack_channel_name
    mapping.auto_extract_tasks = auto_extract_tasks
    mapping.mention_required = mention_required
    mapping.default_priority = default_priority
    mapping.updated_at = now
    session.add(mapping)
    await session.commit()
    await session.refresh(mapping)
    return mapping


async def deactivate_channel_mapping(session: AsyncSession, mapping: ChannelMapping) -> None:
    """Soft-delete a channel mapping."""
    mapping.is_active = False
    mapping.updated_at = utcnow()
    session.add(mapping)
    await session.commit()
