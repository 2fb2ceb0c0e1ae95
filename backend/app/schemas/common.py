"""Shared base for dashboard-facing payloads serialised with camelCase keys."""

from __future__ import annotations

from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel
from sqlmodel._compat import SQLModelConfig


class CamelModel(SQLModel):
    """Accepts snake_case or camelCase input and emits camelCase."""

    model_config = SQLModelConfig(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
