"""Task activity log: append-only audit entries for task mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from app.core.time import utcnow
from app.models.task_activity import TaskActivity

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.models.enums import ActivityType


async def record_activity(
    session: AsyncSession,
    *,
    task_id: UUID,
    activity_type: ActivityType,
    user_id: UUID | None = None,
    field: str | None = None,
    old_value: str | None = None,
    new_value: str | None = None,
    details: dict[str, object] | None = None,
    commit: bool = True,
) -> TaskActivity:
    """Append one activity entry for a task."""
    entry = TaskActivity(
        task_id=task_id,
        user_id=user_id,
        activity_type=activity_type.value,
        change_field=field,
        old_value=old_value,
        new_value=new_value,
        details=details,
        created_at=utcnow(),
    )
    session.add(entry)
    if commit:
        await session.commit()
        await session.refresh(entry)
    return entry


async def list_activity(
    session: AsyncSession,
    *,
    task_id: UUID,
    limit: int = 100,
    offset: int = 0,
) -> list[TaskActivity]:
    """Return a task's activity in insertion order."""
    return await (
        TaskActivity.objects.filter_by(task_id=task_id)
        .order_by(col(TaskActivity.created_at).asc(), col(TaskActivity.id).asc())
        .offset(offset)
        .limit(limit)
        .all(session)
    )
