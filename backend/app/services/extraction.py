"""LLM-backed extraction of structured task drafts from Slack messages.

Uses the Anthropic Claude API to classify free text into a title, description,
priority, task type, and optional code context. Any failure of the API call
(timeout, transport error, malformed reply) degrades to a deterministic
rule-based draft, so `TaskExtractor.extract` always returns a usable result.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from app.core.config import settings
from app.core.logging import get_logger
from app.models.enums import TaskPriority, TaskType

logger = get_logger(__name__)

FALLBACK_TITLE_LENGTH = 100
FALLBACK_CONFIDENCE = 0.5

EXTRACTOR_SYSTEM_PROMPT = """You are a task extraction assistant for a development team. Extract structured task information from Slack messages.

Your job is to analyze messages and extract:
- A clear, actionable task title (start with a verb when possible, max 80 chars)
- A fuller description with context
- Priority level based on urgency indicators
- Task type based on content

## Priority indicators

- critical: Production down, security issue, blocking release, "urgent", "ASAP"
- high: Important bug, urgent feature need, "blocking", "important"
- medium: Normal priority work (default)
- low: Nice to have, minor issues, "minor"

## Task type indicators

- bug: "broken", "not working", "error", "crash", "fails"
- feature: "add", "new", "feature"
- improvement: "improve", "enhance", "update"
- question: Contains "?", "how", "why"
- task: Default for general work items

Also extract any code context if mentioned: file paths (e.g. src/lib/auth.ts), error messages, stack traces, code snippets, suggested fixes, and any branch or commit referenced.

## Output Format

Respond with a JSON object only:
```json
{
  "title": "<task title>",
  "description": "<fuller description>",
  "priority": "critical" | "high" | "medium" | "low",
  "task_type": "bug" | "feature" | "improvement" | "task" | "question",
  "confidence": <number between 0 and 1>,
  "code_context": {
    "file_paths": ["<path>"],
    "error_message": "<text or null>",
    "stack_trace": "<text or null>",
    "code_snippet": "<text or null>",
    "suggested_fix": "<text or null>",
    "branch": "<text or null>",
    "commit_sha": "<text or null>"
  }
}
```

Omit `code_context` when the message mentions no code."""


class CodeContext(BaseModel):
    """Code references pulled out of a message.

    Stored on the task as a camelCase record (`filePaths`, `errorMessage`, ...).
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    file_paths: list[str] = Field(default_factory=list)
    error_message: str | None = None
    stack_trace: str | None = None
    code_snippet: str | None = None
    suggested_fix: str | None = None
    branch: str | None = None
    commit_sha: str | None = None

    def to_record(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TaskDraft(BaseModel):
    """Structured task proposal produced by extraction."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    task_type: TaskType = TaskType.TASK
    confidence: float = Field(default=FALLBACK_CONFIDENCE, ge=0.0, le=1.0)
    code_context: CodeContext | None = None
    model: str | None = None


def fallback_extraction(text: str) -> TaskDraft:
    """Deterministic draft used when the model is unavailable. Never raises."""
    cleaned = text.strip()
    return TaskDraft.model_construct(
        title=cleaned[:FALLBACK_TITLE_LENGTH] or "Untitled task",
        description=cleaned,
        priority=TaskPriority.MEDIUM,
        task_type=TaskType.TASK,
        confidence=FALLBACK_CONFIDENCE,
        code_context=None,
        model=None,
    )


def parse_extraction_response(response_text: str) -> TaskDraft:
    """Parse the JSON object embedded in a model reply into a validated draft."""
    start = response_text.index("{")
    end = response_text.rindex("}") + 1
    payload: Any = json.loads(response_text[start:end])
    if not isinstance(payload, dict):
        raise ValueError("extraction response is not a JSON object")
    if "taskType" in payload and "task_type" not in payload:
        payload["task_type"] = payload.pop("taskType")
    if "codeContext" in payload and "code_context" not in payload:
        payload["code_context"] = payload.pop("codeContext")
    draft = TaskDraft.model_validate(payload)
    if len(draft.title) > FALLBACK_TITLE_LENGTH:
        draft = draft.model_copy(update={"title": draft.title[:FALLBACK_TITLE_LENGTH]})
    return draft


class TaskExtractor:
    """Anthropic-backed task classifier with a rule-based fallback."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        timeout_seconds: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.anthropic_api_key
        self._model = model or settings.ai_extraction_model
        self._timeout_seconds = timeout_seconds or settings.ai_extraction_timeout_seconds
        self._max_tokens = max_tokens or settings.ai_extraction_max_tokens
        self._client = None

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self):
        """Lazily initialize the Anthropic client."""
        if self._client is None:
            import anthropic

            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key or None,
                timeout=self._timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def extract(self, text: str, *, channel_context: str | None = None) -> TaskDraft:
        """Extract a task draft, falling back to the rule-based draft on any failure."""
        try:
            draft = await self._call_llm(text, channel_context=channel_context)
        except Exception:
            logger.warning(
                "extraction.fallback",
                extra={"model": self._model, "text_length": len(text)},
                exc_info=True,
            )
            return fallback_extraction(text)
        logger.info(
            "extraction.complete",
            extra={
                "model": self._model,
                "priority": draft.priority.value,
                "task_type": draft.task_type.value,
                "confidence": draft.confidence,
            },
        )
        return draft

    async def _call_llm(self, text: str, *, channel_context: str | None) -> TaskDraft:
        client = self._get_client()
        content = f"Extract a task from this Slack message:\n\n{text}"
        if channel_context:
            content = f"Channel: #{channel_context}\n\n{content}"

        message = await client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            system=EXTRACTOR_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": content}],
        )
        response_text = "".join(
            getattr(block, "text", "") for block in message.content
        )
        try:
            draft = parse_extraction_response(response_text)
        except (ValueError, ValidationError):
            logger.warning("extraction.response_unparseable", extra={"model": self._model})
            raise
        return draft.model_copy(update={"model": self._model})


_default_extractor: TaskExtractor | None = None


def get_task_extractor() -> TaskExtractor:
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = TaskExtractor()
    return _default_extractor
