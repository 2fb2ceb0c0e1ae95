# ruff: noqa: INP001
"""Task extraction from free-form Slack text."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import pytest

from app.models.enums import TaskPriority, TaskType
from app.services.extraction import (
    EXTRACTOR_SYSTEM_PROMPT,
    CodeContext,
    TaskExtractor,
    fallback_extraction,
    parse_extraction_response,
)


@dataclass
class _TextBlock:
    text: str


@dataclass
class _Reply:
    content: list[_TextBlock]


@dataclass
class _FakeMessages:
    reply: str | None = None
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def create(self, **kwargs: Any) -> _Reply:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return _Reply(content=[_TextBlock(text=self.reply or "")])


@dataclass
class _FakeClient:
    messages: _FakeMessages


def _extractor(messages: _FakeMessages) -> TaskExtractor:
    extractor = TaskExtractor(api_key="test-key", model="claude-test")
    extractor._client = _FakeClient(messages=messages)
    return extractor


def test_fallback_truncates_title_and_uses_defaults() -> None:
    text = "x" * 250
    draft = fallback_extraction(text)

    assert draft.title == "x" * 100
    assert draft.description == text
    assert draft.priority is TaskPriority.MEDIUM
    assert draft.task_type is TaskType.TASK
    assert draft.confidence == 0.5
    assert draft.code_context is None
    assert draft.model is None


def test_parse_extraction_response_reads_embedded_json() -> None:
    reply = (
        "Here is the task:\n```json\n"
        + json.dumps(
            {
                "title": "Fix login on mobile",
                "description": "Login button does nothing on iOS Safari",
                "priority": "critical",
                "taskType": "bug",
                "confidence": 0.92,
                "codeContext": {
                    "filePaths": ["src/lib/auth.ts"],
                    "errorMessage": None,
                    "codeSnippet": "if (!session) return;",
                    "branch": "main",
                    "commitSha": "9f3e2a1",
                },
            }
        )
        + "\n```"
    )

    draft = parse_extraction_response(reply)

    assert draft.title == "Fix login on mobile"
    assert draft.priority is TaskPriority.CRITICAL
    assert draft.task_type is TaskType.BUG
    assert draft.confidence == pytest.approx(0.92)
    assert draft.code_context is not None
    assert draft.code_context.file_paths == ["src/lib/auth.ts"]
    assert draft.code_context.to_record() == {
        "filePaths": ["src/lib/auth.ts"],
        "codeSnippet": "if (!session) return;",
        "branch": "main",
        "commitSha": "9f3e2a1",
    }


def test_code_context_accepts_snake_case_keys() -> None:
    context = CodeContext.model_validate(
        {"file_paths": ["api/orders.py"], "stack_trace": "Traceback ...", "commit_sha": "abc123"}
    )

    assert context.to_record() == {
        "filePaths": ["api/orders.py"],
        "stackTrace": "Traceback ...",
        "commitSha": "abc123",
    }


@pytest.mark.parametrize(
    "reply",
    [
        "no json here",
        '{"title": "", "priority": "medium", "task_type": "task"}',
        '{"title": "ok", "priority": "someday", "task_type": "task"}',
        '{"title": "ok", "priority": "low", "task_type": "task", "confidence": 3}',
        "[1, 2, 3]",
    ],
)
def test_parse_extraction_response_rejects_malformed_replies(reply: str) -> None:
    with pytest.raises(ValueError):
        parse_extraction_response(reply)


def test_system_prompt_carries_classification_heuristics() -> None:
    for keyword in ('"urgent"', '"ASAP"', '"blocking"', '"minor"', '"crash"', '"enhance"'):
        assert keyword in EXTRACTOR_SYSTEM_PROMPT


@pytest.mark.asyncio
async def test_extract_returns_model_draft() -> None:
    messages = _FakeMessages(
        reply=json.dumps(
            {
                "title": "Login broken on mobile",
                "description": "urgent: login broken on mobile",
                "priority": "critical",
                "task_type": "bug",
                "confidence": 0.9,
            }
        )
    )

    draft = await _extractor(messages).extract(
        "urgent: login broken on mobile",
        channel_context="bugs",
    )

    assert draft.priority is TaskPriority.CRITICAL
    assert draft.task_type is TaskType.BUG
    assert draft.model == "claude-test"
    call = messages.calls[0]
    assert call["model"] == "claude-test"
    assert call["system"] == EXTRACTOR_SYSTEM_PROMPT
    assert "#bugs" in call["messages"][0]["content"]
    assert "urgent: login broken on mobile" in call["messages"][0]["content"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "messages",
    [
        _FakeMessages(error=RuntimeError("api down")),
        _FakeMessages(error=asyncio.TimeoutError()),
        _FakeMessages(reply="I could not decide."),
        _FakeMessages(reply='{"title": "x", "priority": "urgent!!", "task_type": "bug"}'),
    ],
)
async def test_extract_falls_back_on_any_failure(messages: _FakeMessages) -> None:
    text = "Checkout page fails when the cart has more than ten items " * 3

    draft = await _extractor(messages).extract(text)

    assert draft.title == text.strip()[:100]
    assert draft.priority is TaskPriority.MEDIUM
    assert draft.task_type is TaskType.TASK
    assert draft.confidence == 0.5
    assert draft.model is None
