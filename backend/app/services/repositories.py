"""Repository registration for a workspace.

Interactive callers get a `RepositoryResult` back instead of an exception so
the API layer decides how to present "already linked" and "not found".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlmodel import col

from app.core.logging import get_logger
from app.core.time import utcnow
from app.models.repositories import Repository

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

RepositoryErrorCode = Literal["duplicate_repository", "not_found"]


@dataclass(frozen=True)
class RepositoryResult:
    """Outcome of a repository mutation."""

    repository: Repository | None = None
    error: RepositoryErrorCode | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


def _not_found() -> RepositoryResult:
    return RepositoryResult(error="not_found", message="Repository not found")


async def list_repositories(session: AsyncSession, workspace_id: UUID) -> list[Repository]:
    """Active repositories of a workspace, by full name."""
    return await (
        Repository.objects.filter_by(workspace_id=workspace_id, is_active=True)
        .order_by(col(Repository.full_name).asc())
        .all(session)
    )


async def get_repository_by_github_id(session: AsyncSession, github_id: int) -> Repository | None:
    return await Repository.objects.filter_by(github_id=github_id).first(session)


async def create_repository(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    name: str,
    full_name: str,
    clone_url: str,
    default_branch: str,
    github_id: int,
    github_node_id: str,
) -> RepositoryResult:
    """Link a GitHub repository; a repository id can only be linked once."""
    existing = await get_repository_by_github_id(session, github_id)
    if existing is not None:
        logger.info(
            "repository.create.duplicate",
            extra={"github_id": github_id, "repository_id": str(existing.id)},
        )
        return RepositoryResult(error="duplicate_repository", message="Repository already linked")

    now = utcnow()
    repository = Repository(
        workspace_id=workspace_id,
        name=name,
        full_name=full_name,
        clone_url=clone_url,
        default_branch=default_branch,
        github_id=github_id,
        github_node_id=github_node_id,
        code_fix_enabled=True,
        auto_create_branches=True,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    session.add(repository)
    await session.commit()
    await session.refresh(repository)
    return RepositoryResult(repository=repository)


async def update_repository(
    session: AsyncSession,
    repository_id: UUID,
    *,
    updates: dict[str, object],
) -> RepositoryResult:
    """Apply settings / default-branch updates."""
    repository = await Repository.objects.by_id(repository_id).first(session)
    if repository is None:
        return _not_found()
    for key, value in updates.items():
        setattr(repository, key, value)
    repository.updated_at = utcnow()
    session.add(repository)
    await session.commit()
    await session.refresh(repository)
    return RepositoryResult(repository=repository)


async def deactivate_repository(session: AsyncSession, repository_id: UUID) -> RepositoryResult:
    """Soft delete: the row stays so existing tasks keep their reference."""
    repository = await Repository.objects.by_id(repository_id).first(session)
    if repository is None:
        return _not_found()
    repository.is_active = False
    repository.updated_at = utcnow()
    session.add(repository)
    await session.commit()
    await session.refresh(repository)
    return RepositoryResult(repository=repository)


async def mark_repository_synced(
    session: AsyncSession,
    repository_id: UUID,
    *,
    default_branch: str | None = None,
) -> RepositoryResult:
    repository = await Repository.objects.by_id(repository_id).first(session)
    if repository is None:
        return _not_found()
    now = utcnow()
    if default_branch:
        repository.default_branch = default_branch
    repository.last_synced_at = now
    repository.updated_at = now
    session.add(repository)
    await session.commit()
    await session.refresh(repository)
    return RepositoryResult(repository=repository)
