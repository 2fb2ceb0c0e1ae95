"""Resolve Slack user ids to linked application users."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession


async def get_user_by_slack_id(session: AsyncSession, slack_user_id: str | None) -> User | None:
    """Return the user linked to a Slack id, or None when not yet linked."""
    if not slack_user_id:
        return None
    return await User.objects.filter_by(slack_user_id=slack_user_id).first(session)
