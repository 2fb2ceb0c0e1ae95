"""Slack Events API and interactivity webhooks.

Both endpoints verify the request signature, acknowledge immediately, and hand
the actual work to background tasks so Slack's three second deadline is met.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qs

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from app.core.logging import get_logger
from app.core.slack_auth import require_slack_signature
from app.schemas.slack import SlackAck, SlackUrlVerification
from app.services.slack.events import (
    parse_block_actions,
    parse_event_envelope,
    process_block_actions,
    process_event_envelope,
)

router = APIRouter(prefix="/slack", tags=["slack"])
logger = get_logger(__name__)
SLACK_BODY_DEP = Depends(require_slack_signature)
RETRY_HEADER = "X-Slack-Retry-Num"
RETRY_REASON_HEADER = "X-Slack-Retry-Reason"


def _decode_json(raw: bytes | str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    return payload


@router.post("/events", response_model=SlackUrlVerification | SlackAck)
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    body: bytes = SLACK_BODY_DEP,
) -> SlackUrlVerification | SlackAck:
    """Receive Events API callbacks.

    Retries are queued like first deliveries; redelivered mentions and replies
    are deduplicated when processed.
    """
    payload = _decode_json(body)
    if payload.get("type") == "url_verification":
        return SlackUrlVerification(challenge=str(payload.get("challenge", "")))

    retry_num = request.headers.get(RETRY_HEADER)
    if retry_num is not None:
        logger.info(
            "slack.events.retry",
            extra={
                "event_id": payload.get("event_id"),
                "retry_num": retry_num,
                "retry_reason": request.headers.get(RETRY_REASON_HEADER),
            },
        )

    if parse_event_envelope(payload) is not None:
        background_tasks.add_task(process_event_envelope, payload)
    else:
        logger.debug("slack.events.ignored", extra={"event_id": payload.get("event_id")})
    return SlackAck()


@router.post("/interactions", response_model=SlackAck)
async def slack_interactions(
    background_tasks: BackgroundTasks,
    body: bytes = SLACK_BODY_DEP,
) -> SlackAck:
    """Receive interactive component callbacks (button clicks)."""
    form = parse_qs(body.decode("utf-8", errors="replace"))
    raw_payload = form.get("payload")
    if not raw_payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing payload")
    payload = _decode_json(raw_payload[0])
    if parse_block_actions(payload):
        background_tasks.add_task(process_block_actions, payload)
    return SlackAck()
