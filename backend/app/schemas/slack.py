"""Slack webhook acknowledgement payloads."""

from __future__ import annotations

from sqlmodel import SQLModel


class SlackAck(SQLModel):
    ok: bool = True


class SlackUrlVerification(SQLModel):
    """Echo of the Events API handshake challenge."""

    challenge: str
