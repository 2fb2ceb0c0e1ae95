# ruff: noqa: INP001
"""Slack webhook endpoints: signature checks, acknowledgement, background work."""

from __future__ import annotations

import json
import time
from typing import Any
from urllib.parse import urlencode

import pytest
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.slack import router as slack_router
from app.core.config import settings
from app.core.slack_auth import compute_slack_signature, verify_slack_signature
from app.models.enums import TaskPriority, TaskStatus, TaskType
from app.models.tasks import Task
from app.models.workspaces import Workspace
from app.services.extraction import TaskDraft
from app.services.slack import client as slack_client
from app.services.slack import events
from app.services.slack.client import SlackSendResult

TEAM_ID = "T0FIXABCD"
CHANNEL_ID = "C0BUGS"


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _build_test_app() -> FastAPI:
    app = FastAPI()
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(slack_router)
    app.include_router(api_v1)
    return app


def _signed_headers(body: bytes, *, timestamp: int | None = None, **extra: str) -> dict[str, str]:
    ts = str(int(time.time()) if timestamp is None else timestamp)
    return {
        "X-Slack-Request-Timestamp": ts,
        "X-Slack-Signature": compute_slack_signature(settings.slack_signing_secret, ts, body),
        **extra,
    }


class _FakeExtractor:
    async def extract(self, text: str, *, channel_context: str | None = None) -> TaskDraft:
        del channel_context
        return TaskDraft(
            title="Login broken on mobile",
            description=text,
            priority=TaskPriority.HIGH,
            task_type=TaskType.BUG,
            confidence=0.8,
            model="claude-test",
        )


@pytest.fixture
def posted(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    async def _post_message(**kwargs: Any) -> SlackSendResult:
        calls.append(kwargs)
        return SlackSendResult(ok=True, ts="1700000000.999999")

    monkeypatch.setattr(slack_client, "post_message", _post_message)
    monkeypatch.setattr(events, "get_task_extractor", _FakeExtractor)
    return calls


def test_verify_slack_signature_rejects_stale_and_tampered_requests() -> None:
    secret = "shh"
    body = b'{"type":"event_callback"}'
    signature = compute_slack_signature(secret, "1700000000", body)

    assert verify_slack_signature(
        secret=secret, timestamp="1700000000", signature=signature, body=body, now=1700000100
    )
    assert not verify_slack_signature(
        secret=secret, timestamp="1700000000", signature=signature, body=body, now=1700009999
    )
    assert not verify_slack_signature(
        secret=secret, timestamp="1700000000", signature=signature, body=body + b" ", now=1700000100
    )
    assert not verify_slack_signature(
        secret=secret, timestamp="not-a-number", signature=signature, body=body
    )
    assert not verify_slack_signature(secret=secret, timestamp=None, signature=None, body=body)


@pytest.mark.asyncio
async def test_events_endpoint_rejects_bad_signature() -> None:
    body = json.dumps({"type": "url_verification", "challenge": "abc"}).encode()
    async with AsyncClient(
        transport=ASGITransport(app=_build_test_app()),
        base_url="http://testserver",
    ) as client:
        response = await client.post(
            "/api/v1/slack/events",
            content=body,
            headers={
                "X-Slack-Request-Timestamp": str(int(time.time())),
                "X-Slack-Signature": "v0=deadbeef",
            },
        )
        missing = await client.post("/api/v1/slack/events", content=body)

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid signature"}
    assert missing.status_code == 401


@pytest.mark.asyncio
async def test_events_endpoint_answers_url_verification() -> None:
    body = json.dumps({"type": "url_verification", "challenge": "3eZbrw1aBm2rZgRNFdxV2595"}).encode()
    async with AsyncClient(
        transport=ASGITransport(app=_build_test_app()),
        base_url="http://testserver",
    ) as client:
        response = await client.post(
            "/api/v1/slack/events",
            content=body,
            headers=_signed_headers(body),
        )

    assert response.status_code == 200
    assert response.json() == {"challenge": "3eZbrw1aBm2rZgRNFdxV2595"}


@pytest.mark.asyncio
async def test_mention_event_is_acked_and_processed_in_background(
    monkeypatch: pytest.MonkeyPatch,
    posted: list[dict[str, Any]],
) -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(events, "async_session_maker", session_maker)
    try:
        async with session_maker() as session:
            session.add(
                Workspace(
                    name="Fix Team",
                    slug="fix-abcd",
                    slack_team_id=TEAM_ID,
                    slack_team_name="Fix Team",
                ),
            )
            await session.commit()

        body = json.dumps(
            {
                "type": "event_callback",
                "team_id": TEAM_ID,
                "event_id": "Ev01",
                "event": {
                    "type": "app_mention",
                    "channel": CHANNEL_ID,
                    "user": "U0ALICE",
                    "text": "<@U0BOT> urgent: login broken on mobile",
                    "ts": "1700000000.000100",
                },
            },
        ).encode()

        async with AsyncClient(
            transport=ASGITransport(app=_build_test_app()),
            base_url="http://testserver",
        ) as client:
            response = await client.post(
                "/api/v1/slack/events",
                content=body,
                headers=_signed_headers(body),
            )

        assert response.status_code == 200
        assert response.json() == {"ok": True}

        async with session_maker() as session:
            tasks = await Task.objects.all().all(session)
        assert len(tasks) == 1
        assert tasks[0].display_id == "FIX-1"
        assert tasks[0].status == TaskStatus.BACKLOG.value
        assert tasks[0].priority == TaskPriority.HIGH.value
        assert tasks[0].task_type == TaskType.BUG.value
        assert len(posted) == 1
        assert posted[0]["thread_ts"] == "1700000000.000100"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_slack_retry_of_unseen_mention_creates_the_task_once(
    monkeypatch: pytest.MonkeyPatch,
    posted: list[dict[str, Any]],
) -> None:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(events, "async_session_maker", session_maker)
    try:
        async with session_maker() as session:
            session.add(
                Workspace(
                    name="Fix Team",
                    slug="fix-abcd",
                    slack_team_id=TEAM_ID,
                    slack_team_name="Fix Team",
                ),
            )
            await session.commit()

        body = json.dumps(
            {
                "type": "event_callback",
                "team_id": TEAM_ID,
                "event_id": "Ev02",
                "event": {
                    "type": "app_mention",
                    "channel": CHANNEL_ID,
                    "user": "U0ALICE",
                    "text": "<@U0BOT> checkout fails with ten items",
                    "ts": "1700000000.000300",
                },
            },
        ).encode()

        async with AsyncClient(
            transport=ASGITransport(app=_build_test_app()),
            base_url="http://testserver",
        ) as client:
            first_retry = await client.post(
                "/api/v1/slack/events",
                content=body,
                headers=_signed_headers(
                    body,
                    **{"X-Slack-Retry-Num": "1", "X-Slack-Retry-Reason": "http_timeout"},
                ),
            )
            second_retry = await client.post(
                "/api/v1/slack/events",
                content=body,
                headers=_signed_headers(
                    body,
                    **{"X-Slack-Retry-Num": "2", "X-Slack-Retry-Reason": "http_timeout"},
                ),
            )

        assert first_retry.status_code == 200
        assert second_retry.status_code == 200

        async with session_maker() as session:
            tasks = await Task.objects.all().all(session)
        assert [task.display_id for task in tasks] == ["FIX-1"]
        assert tasks[0].slack_message_ts == "1700000000.000300"
        assert len(posted) == 1
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_interactions_endpoint_queues_button_clicks(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    processed: list[dict[str, Any]] = []

    async def _record(payload: dict[str, Any]) -> None:
        processed.append(payload)

    monkeypatch.setattr("app.api.slack.process_block_actions", _record)
    payload = {
        "type": "block_actions",
        "team": {"id": TEAM_ID},
        "channel": {"id": CHANNEL_ID},
        "user": {"id": "U0ALICE"},
        "message": {"ts": "1700000000.000200", "thread_ts": "1700000000.000100"},
        "actions": [{"action_id": "task_status_FIX-1_done"}],
    }
    body = urlencode({"payload": json.dumps(payload)}).encode()

    async with AsyncClient(
        transport=ASGITransport(app=_build_test_app()),
        base_url="http://testserver",
    ) as client:
        response = await client.post(
            "/api/v1/slack/interactions",
            content=body,
            headers=_signed_headers(
                body,
                **{"Content-Type": "application/x-www-form-urlencoded"},
            ),
        )
        empty_body = b"foo=bar"
        missing = await client.post(
            "/api/v1/slack/interactions",
            content=empty_body,
            headers=_signed_headers(empty_body),
        )

    assert response.status_code == 200
    assert processed == [payload]
    assert missing.status_code == 400
