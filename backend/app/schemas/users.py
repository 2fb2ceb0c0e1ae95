"""User and session payloads for the dashboard."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class UserRead(CamelModel):
    id: UUID
    email: str
    name: str
    avatar_url: str | None = None
    github_username: str
    slack_user_id: str | None = None
    slack_username: str | None = None
    last_seen_at: datetime | None = None


class SessionRead(CamelModel):
    """Current session as seen by the dashboard."""

    authenticated: bool
    user: UserRead | None = None
