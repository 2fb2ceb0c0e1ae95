"""Source repositories linked to a workspace."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Repository(QueryModel, table=True):
    """GitHub repository registered for code-context routing."""

    __tablename__ = "repositories"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)

    name: str
    full_name: str
    clone_url: str
    default_branch: str = Field(default="main")

    github_id: int = Field(unique=True, index=True)
    github_node_id: str

    code_fix_enabled: bool = Field(default=True)
    branch_prefix: str | None = None
    auto_create_branches: bool = Field(default=True)

    is_active: bool = Field(default=True, index=True)
    last_synced_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
