"""Repository registration payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class RepositoryCreate(CamelModel):
    """GitHub repository details supplied when linking a repository."""

    name: str = Field(min_length=1, examples=["fixbot"])
    full_name: str = Field(min_length=1, examples=["acme/fixbot"])
    clone_url: str = Field(min_length=1, examples=["https://github.com/acme/fixbot.git"])
    default_branch: str = Field(default="main", min_length=1)
    github_id: int = Field(examples=[123456789])
    github_node_id: str = Field(min_length=1, examples=["R_kgDOabc123"])


class RepositoryUpdate(CamelModel):
    """Partial settings update; omitted fields are left unchanged."""

    default_branch: str | None = Field(default=None, min_length=1)
    code_fix_enabled: bool | None = None
    branch_prefix: str | None = None
    auto_create_branches: bool | None = None


class RepositorySync(CamelModel):
    default_branch: str | None = None


class RepositoryRead(CamelModel):
    id: UUID
    workspace_id: UUID
    name: str
    full_name: str
    clone_url: str
    default_branch: str
    github_id: int
    github_node_id: str
    code_fix_enabled: bool
    branch_prefix: str | None = None
    auto_create_branches: bool
    is_active: bool
    last_synced_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
