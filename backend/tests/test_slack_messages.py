# ruff: noqa: INP001
"""Slack notification text and button payloads."""

from __future__ import annotations

import re

import pytest

from app.models.enums import TaskPriority, TaskStatus, TaskType
from app.services.slack.messages import (
    MENTION_PATTERN,
    StatusAction,
    build_task_created_blocks,
    parse_status_action_id,
    priority_emoji,
    status_action_id,
    status_changed_text,
    task_type_emoji,
)


@pytest.mark.parametrize(
    ("priority", "emoji"),
    [
        (TaskPriority.CRITICAL, ":rotating_light:"),
        (TaskPriority.HIGH, ":fire:"),
        ("medium", ":yellow_circle:"),
        ("low", ":white_circle:"),
    ],
)
def test_priority_emoji(priority: TaskPriority | str, emoji: str) -> None:
    assert priority_emoji(priority) == emoji


def test_every_task_type_has_an_emoji() -> None:
    emojis = {task_type_emoji(task_type) for task_type in TaskType}
    assert len(emojis) == len(TaskType)
    assert task_type_emoji("bug") == ":bug:"


def test_task_created_blocks_carry_start_and_done_buttons() -> None:
    blocks = build_task_created_blocks(
        display_id="FIX-42",
        title="Login broken on mobile",
        priority="critical",
        task_type="bug",
    )

    assert [block["type"] for block in blocks] == ["section", "context", "actions"]
    assert blocks[0]["text"]["text"] == ":bug: *FIX-42*: Login broken on mobile"
    assert blocks[1]["elements"][0]["text"] == ":rotating_light: critical priority • bug"

    buttons = blocks[2]["elements"]
    assert [button["text"]["text"] for button in buttons] == ["Start", "Done"]
    assert buttons[0]["action_id"] == "task_status_FIX-42_in_progress"
    assert buttons[0]["style"] == "primary"
    assert buttons[1]["action_id"] == "task_status_FIX-42_done"
    assert "style" not in buttons[1]


@pytest.mark.parametrize("status", list(TaskStatus))
def test_status_action_ids_decode_back(status: TaskStatus) -> None:
    action_id = status_action_id("OPS-7", status)
    assert parse_status_action_id(action_id) == StatusAction(display_id="OPS-7", status=status)


@pytest.mark.parametrize(
    "action_id",
    [
        "task_assign_FIX-1",
        "task_status_FIX-1",
        "task_status__done",
        "task_status_FIX-1_finished",
        "",
    ],
)
def test_parse_status_action_id_rejects_unknown_ids(action_id: str) -> None:
    assert parse_status_action_id(action_id) is None


def test_status_changed_text_mentions_actor_when_known() -> None:
    assert (
        status_changed_text("FIX-3", TaskStatus.IN_PROGRESS, "U123")
        == "*FIX-3* moved to *in progress* by <@U123>"
    )
    assert status_changed_text("FIX-3", TaskStatus.DONE, None) == "*FIX-3* moved to *done*"


def test_mention_pattern_matches_slack_user_tokens() -> None:
    assert re.sub(MENTION_PATTERN, "", "<@U0BOT> fix the login").strip() == "fix the login"
