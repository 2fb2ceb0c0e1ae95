"""Per-workspace task numbering and display-id formatting.

Numbers come from a single `INSERT ... ON CONFLICT DO UPDATE ... RETURNING`
statement against `workspace_counters`, so the read-modify-write happens
inside the database under the row lock. Two concurrent allocations for the
same workspace are serialized by the store and can never observe the same
value. The increment joins the caller's transaction: if the task insert that
follows is rolled back, the number is released with it.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from app.core.config import settings
from app.core.logging import get_logger
from app.models.enums import CounterType
from app.models.workspace_counters import WorkspaceCounter

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.models.workspaces import Workspace

logger = get_logger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}
_PREFIX_STRIP_RE = re.compile(r"[^A-Z0-9]+")


class UnsupportedDialectError(RuntimeError):
    """Raised when the bound database cannot run an atomic upsert."""


def _increment_statement(dialect_name: str, *, workspace_id: UUID, counter_type: CounterType):
    insert = _INSERT_BY_DIALECT.get(dialect_name)
    if insert is None:
        raise UnsupportedDialectError(f"Atomic counters are not supported on {dialect_name!r}")
    table = WorkspaceCounter.__table__  # pyright: ignore[reportAttributeAccessIssue]
    statement = insert(table).values(
        id=uuid4(),
        workspace_id=workspace_id,
        counter_type=counter_type.value,
        current_value=1,
    )
    return statement.on_conflict_do_update(
        index_elements=[table.c.workspace_id, table.c.counter_type],
        set_={"current_value": table.c.current_value + 1},
    ).returning(table.c.current_value)


async def allocate_task_number(session: AsyncSession, workspace_id: UUID) -> int:
    """Return the next task number (>= 1) for a workspace."""
    dialect_name = session.get_bind().dialect.name
    statement = _increment_statement(
        dialect_name,
        workspace_id=workspace_id,
        counter_type=CounterType.TASK_NUMBER,
    )
    result = await session.exec(statement)  # type: ignore[call-overload]
    task_number = int(result.scalar_one())
    logger.debug(
        "counters.task_number.allocated",
        extra={"workspace_id": str(workspace_id), "task_number": task_number},
    )
    return task_number


def display_prefix(slug: str | None) -> str:
    """Derive the display-id prefix from a workspace slug.

    Keeps upper-cased alphanumerics, truncated to `task_prefix_length`;
    falls back to `task_default_prefix` when nothing usable remains.
    """
    cleaned = _PREFIX_STRIP_RE.sub("", (slug or "").upper())
    return cleaned[: settings.task_prefix_length] or settings.task_default_prefix


def format_display_id(prefix: str, task_number: int) -> str:
    """Render `{PREFIX}-{number}`."""
    return f"{prefix}-{task_number}"


def normalize_display_id(display_id: str) -> str:
    """Canonical form used for lookups (`fix-7` and ` FIX-7 ` both match `FIX-7`)."""
    return display_id.strip().upper()


async def allocate_display_id(
    session: AsyncSession,
    workspace: Workspace,
) -> tuple[int, str]:
    """Allocate a task number and derive its display id in one step."""
    task_number = await allocate_task_number(session, workspace.id)
    return task_number, format_display_id(display_prefix(workspace.slug), task_number)
