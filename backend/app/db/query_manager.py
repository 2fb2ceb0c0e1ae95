"""Chainable query helpers exposed on models as `Model.objects`."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlmodel import col, select

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT")


@dataclass(frozen=True)
class QuerySet(Generic[ModelT]):
    """Immutable wrapper around a select statement; each call returns a new set."""

    model: type[ModelT]
    statement: SelectOfScalar[ModelT]

    def filter(self, *clauses: Any) -> QuerySet[ModelT]:
        return replace(self, statement=self.statement.where(*clauses))

    def filter_by(self, **kwargs: object) -> QuerySet[ModelT]:
        return replace(self, statement=self.statement.filter_by(**kwargs))

    def for_update(self) -> QuerySet[ModelT]:
        """Lock matched rows until the transaction ends (no-op on SQLite)."""
        return replace(self, statement=self.statement.with_for_update())

    def order_by(self, *clauses: Any) -> QuerySet[ModelT]:
        return replace(self, statement=self.statement.order_by(*clauses))

    def limit(self, value: int) -> QuerySet[ModelT]:
        return replace(self, statement=self.statement.limit(value))

    def offset(self, value: int) -> QuerySet[ModelT]:
        return replace(self, statement=self.statement.offset(value))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.statement)).first()

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement))


class ModelManager(Generic[ModelT]):
    """Entry point for building `QuerySet`s for one model class."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> QuerySet[ModelT]:
        return QuerySet(self.model, select(self.model))

    def by_id(self, obj_id: UUID) -> QuerySet[ModelT]:
        return self.all().filter(col(self.model.id) == obj_id)  # type: ignore[attr-defined]

    def filter(self, *clauses: Any) -> QuerySet[ModelT]:
        return self.all().filter(*clauses)

    def filter_by(self, **kwargs: object) -> QuerySet[ModelT]:
        return self.all().filter_by(**kwargs)


class ManagerDescriptor:
    """Class-level descriptor returning a manager bound to the owner model."""

    def __get__(self, instance: object, owner: type[Any]) -> ModelManager[Any]:
        return ModelManager(owner)
