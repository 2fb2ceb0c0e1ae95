"""User identities keyed by GitHub account, optionally linked to Slack."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class User(QueryModel, table=True):
    """Application user; `slack_user_id` is unset until the account is linked."""

    __tablename__ = "users"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(index=True)
    name: str
    avatar_url: str | None = None

    github_id: int = Field(unique=True, index=True)
    github_username: str

    slack_user_id: str | None = Field(default=None, unique=True, index=True)
    slack_username: str | None = None

    is_active: bool = Field(default=True)
    last_seen_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
