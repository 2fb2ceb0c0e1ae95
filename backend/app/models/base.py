"""Shared SQLModel base class for table models."""

from __future__ import annotations

from typing import ClassVar

from sqlmodel import SQLModel

from app.db.query_manager import ManagerDescriptor


class QueryModel(SQLModel, table=False):
    """Base model that exposes `Model.objects` query helpers."""

    objects: ClassVar[ManagerDescriptor] = ManagerDescriptor()
