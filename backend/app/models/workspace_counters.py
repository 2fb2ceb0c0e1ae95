"""Per-workspace monotonic counters."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from app.models.base import QueryModel
from app.models.enums import CounterType, enum_check


class WorkspaceCounter(QueryModel, table=True):
    """High-water mark for one counter kind in one workspace."""

    __tablename__ = "workspace_counters"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "workspace_id",
            "counter_type",
            name="uq_workspace_counters_workspace_type",
        ),
        enum_check("counter_type", CounterType, name="ck_workspace_counters_counter_type"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    counter_type: str = Field(default=CounterType.TASK_NUMBER.value)
    current_value: int = Field(default=0)
