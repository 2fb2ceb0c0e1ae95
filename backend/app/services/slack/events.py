"""Inbound Slack event dispatch: mentions, thread replies, and button clicks.

Every handler here runs after Slack has already been acknowledged, so domain
failures are logged and reported through the returned outcome instead of
being raised. Outbound sends are best-effort and never undo committed work.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol

from app.core.logging import get_logger
from app.core.time import utcnow
from app.db.session import async_session_maker
from app.models.enums import TaskSourceType
from app.services.channel_mappings import get_channel_mapping
from app.services.extraction import TaskDraft, fallback_extraction, get_task_extractor
from app.services.slack import client as slack_client
from app.services.slack.messages import (
    MENTION_PATTERN,
    USAGE_HINT,
    build_task_created_blocks,
    parse_status_action_id,
    status_changed_text,
    task_created_text,
)
from app.services.tasks import (
    TaskSource,
    add_message,
    change_status,
    create_task,
    find_task_by_slack_message,
    find_task_by_slack_thread,
)
from app.services.workspaces import get_workspace_by_slack_team

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.models.channel_mappings import ChannelMapping
    from app.models.messages import Message
    from app.models.tasks import Task
    from app.models.workspaces import Workspace

logger = get_logger(__name__)

_MENTION_RE = re.compile(MENTION_PATTERN)
_IGNORED_MESSAGE_SUBTYPES = frozenset(
    {"bot_message", "message_changed", "message_deleted", "channel_join", "channel_leave"},
)

MentionCode = Literal["created", "usage_hint", "workspace_missing", "duplicate"]
ReplyCode = Literal["stored", "workspace_missing", "no_task", "duplicate"]


class Extractor(Protocol):
    async def extract(self, text: str, *, channel_context: str | None = None) -> TaskDraft: ...


@dataclass(frozen=True)
class SlackMessageEvent:
    """The fields of an `app_mention` or threaded `message` event we act on."""

    team_id: str
    channel_id: str
    user_id: str | None
    text: str
    ts: str
    thread_ts: str | None = None

    @property
    def reply_thread_ts(self) -> str:
        return self.thread_ts or self.ts


@dataclass(frozen=True)
class MentionOutcome:
    code: MentionCode
    task: Task | None = None


@dataclass(frozen=True)
class ThreadReplyOutcome:
    code: ReplyCode
    message: Message | None = None


@dataclass(frozen=True)
class BlockActionEvent:
    team_id: str
    channel_id: str
    user_id: str | None
    action_id: str
    thread_ts: str | None = None


def strip_mentions(text: str) -> str:
    return _MENTION_RE.sub("", text).strip()


def _extraction_record(draft: TaskDraft, original_text: str) -> dict[str, object]:
    return {
        "extractedAt": utcnow().isoformat(),
        "model": draft.model or "fallback",
        "confidence": draft.confidence,
        "originalText": original_text,
    }


async def _draft_for(
    text: str,
    *,
    workspace: Workspace,
    mapping: ChannelMapping | None,
    extractor: Extractor | None,
) -> TaskDraft:
    if not workspace.ai_extraction_enabled:
        return fallback_extraction(text)
    if mapping is not None and not mapping.auto_extract_tasks:
        return fallback_extraction(text)
    active = extractor or get_task_extractor()
    try:
        return await active.extract(
            text,
            channel_context=mapping.slack_channel_name if mapping else None,
        )
    except Exception:
        logger.exception("slack.mention.extractor_failed")
        return fallback_extraction(text)


async def _reply(event_channel: str, thread_ts: str, text: str, **kwargs: Any) -> None:
    result = await slack_client.post_message(
        channel=event_channel,
        thread_ts=thread_ts,
        text=text,
        **kwargs,
    )
    if not result.ok:
        logger.warning(
            "slack.reply.failed",
            extra={"channel": event_channel, "thread_ts": thread_ts, "error": result.error},
        )


async def handle_app_mention(
    session: AsyncSession,
    event: SlackMessageEvent,
    *,
    extractor: Extractor | None = None,
) -> MentionOutcome:
    """Turn a bot mention into a task and confirm it in the thread."""
    workspace = await get_workspace_by_slack_team(session, event.team_id)
    if workspace is None:
        logger.warning("slack.mention.workspace_missing", extra={"team_id": event.team_id})
        return MentionOutcome(code="workspace_missing")

    mapping = await get_channel_mapping(session, event.channel_id, workspace_id=workspace.id)
    clean_text = strip_mentions(event.text)
    if not clean_text:
        await _reply(event.channel_id, event.reply_thread_ts, USAGE_HINT)
        return MentionOutcome(code="usage_hint")

    existing = await find_task_by_slack_message(
        session,
        workspace_id=workspace.id,
        slack_channel_id=event.channel_id,
        slack_message_ts=event.ts,
    )
    if existing is not None:
        logger.info(
            "slack.mention.duplicate",
            extra={"display_id": existing.display_id, "ts": event.ts},
        )
        return MentionOutcome(code="duplicate", task=existing)

    draft = await _draft_for(clean_text, workspace=workspace, mapping=mapping, extractor=extractor)
    task = await create_task(
        session,
        workspace=workspace,
        title=draft.title,
        description=draft.description,
        priority=draft.priority,
        task_type=draft.task_type,
        source=TaskSource(
            source_type=TaskSourceType.SLACK,
            slack_channel_id=event.channel_id,
            slack_channel_name=mapping.slack_channel_name if mapping else None,
            slack_message_ts=event.ts,
            slack_thread_ts=event.reply_thread_ts,
        ),
        reporter_slack_id=event.user_id,
        repository_id=mapping.repository_id if mapping else None,
        ai_extraction=_extraction_record(draft, clean_text),
        code_context=draft.code_context.to_record() if draft.code_context else None,
    )

    await _reply(
        event.channel_id,
        event.reply_thread_ts,
        task_created_text(task.display_id),
        blocks=build_task_created_blocks(
            display_id=task.display_id,
            title=task.title,
            priority=task.priority,
            task_type=task.task_type,
        ),
    )
    return MentionOutcome(code="created", task=task)


async def handle_thread_reply(session: AsyncSession, event: SlackMessageEvent) -> ThreadReplyOutcome:
    """Append a threaded reply to the task bound to that thread, if any."""
    workspace = await get_workspace_by_slack_team(session, event.team_id)
    if workspace is None:
        logger.debug("slack.reply.workspace_missing", extra={"team_id": event.team_id})
        return ThreadReplyOutcome(code="workspace_missing")
    if event.thread_ts is None:
        return ThreadReplyOutcome(code="no_task")

    task = await find_task_by_slack_thread(
        session,
        workspace_id=workspace.id,
        slack_channel_id=event.channel_id,
        slack_thread_ts=event.thread_ts,
    )
    if task is None:
        return ThreadReplyOutcome(code="no_task")

    message = await add_message(
        session,
        task=task,
        content=event.text,
        author_slack_id=event.user_id,
        slack_message_ts=event.ts,
    )
    if message is None:
        return ThreadReplyOutcome(code="duplicate")
    logger.info(
        "slack.reply.stored",
        extra={"display_id": task.display_id, "message_id": str(message.id)},
    )
    return ThreadReplyOutcome(code="stored", message=message)


async def handle_block_action(session: AsyncSession, action: BlockActionEvent) -> bool:
    """Apply a `task_status_*` button click and post the result in the thread."""
    parsed = parse_status_action_id(action.action_id)
    if parsed is None:
        logger.debug("slack.action.ignored", extra={"action_id": action.action_id})
        return False

    workspace = await get_workspace_by_slack_team(session, action.team_id)
    if workspace is None:
        logger.warning("slack.action.workspace_missing", extra={"team_id": action.team_id})
        return False

    result = await change_status(
        session,
        display_id=parsed.display_id,
        new_status=parsed.status,
        actor_slack_id=action.user_id,
        workspace_id=workspace.id,
    )
    if result.ok:
        text = status_changed_text(result.task.display_id, result.new_status, action.user_id)
    else:
        text = result.message
    if action.thread_ts:
        await _reply(action.channel_id, action.thread_ts, text)
    return result.ok


def parse_event_envelope(
    envelope: dict[str, Any],
) -> tuple[Literal["app_mention", "thread_reply"], SlackMessageEvent] | None:
    """Classify an Events API `event_callback` body; None when we don't act on it."""
    if envelope.get("type") != "event_callback":
        return None
    event = envelope.get("event")
    if not isinstance(event, dict):
        return None
    team_id = envelope.get("team_id") or event.get("team")
    channel_id = event.get("channel")
    ts = event.get("ts")
    if not team_id or not channel_id or not ts:
        return None

    parsed = SlackMessageEvent(
        team_id=str(team_id),
        channel_id=str(channel_id),
        user_id=event.get("user"),
        text=str(event.get("text") or ""),
        ts=str(ts),
        thread_ts=event.get("thread_ts"),
    )
    event_type = event.get("type")
    if event_type == "app_mention":
        return "app_mention", parsed
    if event_type != "message":
        return None
    if event.get("bot_id") or event.get("subtype") in _IGNORED_MESSAGE_SUBTYPES:
        return None
    if not parsed.thread_ts or parsed.thread_ts == parsed.ts:
        return None
    if _MENTION_RE.search(parsed.text):
        # The matching app_mention event covers it.
        return None
    return "thread_reply", parsed


def parse_block_actions(payload: dict[str, Any]) -> list[BlockActionEvent]:
    """Extract button clicks from an interactivity `block_actions` payload."""
    if payload.get("type") != "block_actions":
        return []
    team_id = (payload.get("team") or {}).get("id")
    channel_id = (payload.get("channel") or {}).get("id")
    if not team_id or not channel_id:
        return []
    user_id = (payload.get("user") or {}).get("id")
    message = payload.get("message") or {}
    container = payload.get("container") or {}
    thread_ts = message.get("thread_ts") or container.get("thread_ts") or message.get("ts")

    return [
        BlockActionEvent(
            team_id=str(team_id),
            channel_id=str(channel_id),
            user_id=user_id,
            action_id=str(action["action_id"]),
            thread_ts=thread_ts,
        )
        for action in payload.get("actions") or []
        if isinstance(action, dict) and action.get("action_id")
    ]


async def dispatch_event(
    session: AsyncSession,
    envelope: dict[str, Any],
    *,
    extractor: Extractor | None = None,
) -> MentionOutcome | ThreadReplyOutcome | None:
    routed = parse_event_envelope(envelope)
    if routed is None:
        return None
    kind, event = routed
    if kind == "app_mention":
        return await handle_app_mention(session, event, extractor=extractor)
    return await handle_thread_reply(session, event)


async def process_event_envelope(envelope: dict[str, Any]) -> None:
    """Background entry point: own session, log-and-drop on failure."""
    async with async_session_maker() as session:
        try:
            await dispatch_event(session, envelope)
        except Exception:
            await session.rollback()
            logger.exception(
                "slack.event.failed",
                extra={"event_id": envelope.get("event_id")},
            )


async def process_block_actions(payload: dict[str, Any]) -> None:
    async with async_session_maker() as session:
        for action in parse_block_actions(payload):
            try:
                await handle_block_action(session, action)
            except Exception:
                await session.rollback()
                logger.exception(
                    "slack.action.failed",
                    extra={"action_id": action.action_id},
                )
