"""Slack message text and Block Kit payloads for task notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.models.enums import TaskPriority, TaskStatus, TaskType

USAGE_HINT = (
    "Please include a description of the task. Example:\n"
    "`@fixbot Login button not working on mobile`"
)
STATUS_ACTION_PREFIX = "task_status_"
MENTION_PATTERN = r"<@[A-Z0-9]+>"


def priority_emoji(priority: TaskPriority | str) -> str:
    match TaskPriority(priority):
        case TaskPriority.CRITICAL:
            return ":rotating_light:"
        case TaskPriority.HIGH:
            return ":fire:"
        case TaskPriority.MEDIUM:
            return ":yellow_circle:"
        case TaskPriority.LOW:
            return ":white_circle:"


def task_type_emoji(task_type: TaskType | str) -> str:
    match TaskType(task_type):
        case TaskType.BUG:
            return ":bug:"
        case TaskType.FEATURE:
            return ":sparkles:"
        case TaskType.IMPROVEMENT:
            return ":chart_with_upwards_trend:"
        case TaskType.TASK:
            return ":clipboard:"
        case TaskType.QUESTION:
            return ":question:"


def status_action_id(display_id: str, status: TaskStatus) -> str:
    return f"{STATUS_ACTION_PREFIX}{display_id}_{status.value}"


@dataclass(frozen=True)
class StatusAction:
    display_id: str
    status: TaskStatus


def parse_status_action_id(action_id: str) -> StatusAction | None:
    """Decode `task_status_{displayId}_{status}`; None for anything else.

    Display ids never contain underscores, so the first underscore after the
    prefix separates id from status (`in_progress` keeps its own).
    """
    if not action_id.startswith(STATUS_ACTION_PREFIX):
        return None
    remainder = action_id[len(STATUS_ACTION_PREFIX) :]
    display_id, sep, raw_status = remainder.partition("_")
    if not sep or not display_id:
        return None
    try:
        status = TaskStatus(raw_status)
    except ValueError:
        return None
    return StatusAction(display_id=display_id, status=status)


def task_created_text(display_id: str) -> str:
    return f"Task created: *{display_id}*"


def build_task_created_blocks(
    *,
    display_id: str,
    title: str,
    priority: TaskPriority | str,
    task_type: TaskType | str,
) -> list[dict[str, Any]]:
    """Confirmation card with Start and Done buttons."""
    priority = TaskPriority(priority)
    task_type = TaskType(task_type)
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"{task_type_emoji(task_type)} *{display_id}*: {title}",
            },
        },
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": (
                        f"{priority_emoji(priority)} {priority.value} priority • "
                        f"{task_type.value}"
                    ),
                },
            ],
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Start"},
                    "action_id": status_action_id(display_id, TaskStatus.IN_PROGRESS),
                    "style": "primary",
                },
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Done"},
                    "action_id": status_action_id(display_id, TaskStatus.DONE),
                },
            ],
        },
    ]


def status_changed_text(display_id: str, new_status: TaskStatus, actor_slack_id: str | None) -> str:
    label = new_status.value.replace("_", " ")
    if actor_slack_id:
        return f"*{display_id}* moved to *{label}* by <@{actor_slack_id}>"
    return f"*{display_id}* moved to *{label}*"
