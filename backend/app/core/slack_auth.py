"""Slack request signature verification for inbound webhooks."""

from __future__ import annotations

import hashlib
import hmac
import time

from fastapi import HTTPException, Request, status

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Slack-Signature"
TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_VERSION = "v0"


def compute_slack_signature(secret: str, timestamp: str, body: bytes) -> str:
    basestring = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + body
    digest = hmac.new(secret.encode(), basestring, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_slack_signature(
    *,
    secret: str,
    timestamp: str | None,
    signature: str | None,
    body: bytes,
    now: float | None = None,
    max_age_seconds: int | None = None,
) -> bool:
    """Check `v0=HMAC-SHA256(secret, "v0:{ts}:{body}")` and timestamp freshness."""
    if not timestamp or not signature:
        return False
    try:
        sent_at = int(timestamp)
    except ValueError:
        return False
    max_age = settings.slack_signature_max_age_seconds if max_age_seconds is None else max_age_seconds
    current = time.time() if now is None else now
    if max_age and abs(current - sent_at) > max_age:
        return False
    expected = compute_slack_signature(secret, timestamp, body)
    return hmac.compare_digest(expected, signature)


async def require_slack_signature(request: Request) -> bytes:
    """FastAPI dependency returning the raw body of a verified Slack request."""
    body = await request.body()
    secret = settings.slack_signing_secret.strip()
    if not secret:
        # Only reachable in dev; non-dev settings refuse an empty secret.
        logger.warning("slack.signature.unverified", extra={"path": request.url.path})
        return body
    if not verify_slack_signature(
        secret=secret,
        timestamp=request.headers.get(TIMESTAMP_HEADER),
        signature=request.headers.get(SIGNATURE_HEADER),
        body=body,
    ):
        logger.warning("slack.signature.invalid", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")
    return body
