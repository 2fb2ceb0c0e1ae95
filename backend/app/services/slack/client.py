"""Best-effort outbound Slack Web API calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SlackSendResult:
    """Outcome of a `chat.postMessage` call."""

    ok: bool
    ts: str | None = None
    error: str | None = None


async def post_message(
    *,
    channel: str,
    text: str,
    thread_ts: str | None = None,
    blocks: list[dict[str, Any]] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SlackSendResult:
    """Post a message to a channel or thread.

    Failures are logged and reported through the result; this never raises
    and never retries.
    """
    token = settings.slack_bot_token.strip()
    if not token:
        logger.warning("slack.post_message.skipped", extra={"reason": "missing_bot_token"})
        return SlackSendResult(ok=False, error="missing_bot_token")

    body: dict[str, Any] = {"channel": channel, "text": text}
    if thread_ts:
        body["thread_ts"] = thread_ts
    if blocks:
        body["blocks"] = blocks

    url = f"{settings.slack_api_base_url.rstrip('/')}/chat.postMessage"
    try:
        async with httpx.AsyncClient(
            timeout=settings.slack_timeout_seconds,
            transport=transport,
        ) as client:
            response = await client.post(
                url,
                json=body,
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
            data = response.json()
    except httpx.TimeoutException:
        logger.warning("slack.post_message.timeout", extra={"channel": channel})
        return SlackSendResult(ok=False, error="timeout")
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning(
            "slack.post_message.failed",
            extra={"channel": channel, "error": str(exc)},
        )
        return SlackSendResult(ok=False, error="transport_error")

    if not isinstance(data, dict) or not data.get("ok"):
        error = data.get("error") if isinstance(data, dict) else None
        logger.error(
            "slack.post_message.rejected",
            extra={"channel": channel, "error": error},
        )
        return SlackSendResult(ok=False, error=str(error or "unknown_error"))

    return SlackSendResult(ok=True, ts=data.get("ts"))
