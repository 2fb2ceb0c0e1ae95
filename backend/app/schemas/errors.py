"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Error envelope produced by the global exception handlers."""

    detail: str | dict[str, object] | list[object] = Field(
        description="Human-readable message or validation error list.",
        examples=["Task FIX-12 not found", "Repository already linked"],
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
