"""Slack Events API ingestion and outbound messaging.

Prefer importing from this package when used by other modules.
"""

from app.services.slack.client import SlackSendResult, post_message
from app.services.slack.events import (
    dispatch_event,
    handle_app_mention,
    handle_block_action,
    handle_thread_reply,
    process_block_actions,
    process_event_envelope,
)

__all__ = [
    "SlackSendResult",
    "dispatch_event",
    "handle_app_mention",
    "handle_block_action",
    "handle_thread_reply",
    "post_message",
    "process_block_actions",
    "process_event_envelope",
]
