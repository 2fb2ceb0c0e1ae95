# ruff: noqa: INP001
"""Task creation, status transitions, assignment, and the activity trail."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.enums import TaskPriority, TaskSourceType, TaskStatus, TaskType
from app.models.messages import Message
from app.models.repositories import Repository
from app.models.task_activity import TaskActivity
from app.models.tasks import Task
from app.models.users import User
from app.models.workspace_counters import WorkspaceCounter
from app.models.workspaces import Workspace
from app.services.activity import list_activity
from app.services.channel_mappings import upsert_channel_mapping
from app.services.tasks import (
    TaskSource,
    add_message,
    apply_status_transition,
    assign_task,
    change_priority,
    change_status,
    create_task,
    find_task_by_display_id,
    summarize_channel_tasks,
    summarize_tasks,
    unassign_task,
)


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _seed_workspace(session: AsyncSession, *, next_number: int = 1) -> Workspace:
    workspace = Workspace(
        name="Fix Team",
        slug="fix-abcd",
        slack_team_id="T0FIXABCD",
        slack_team_name="Fix Team",
    )
    session.add(workspace)
    await session.flush()
    if next_number > 1:
        session.add(
            WorkspaceCounter(
                workspace_id=workspace.id,
                counter_type="task_number",
                current_value=next_number - 1,
            ),
        )
    await session.commit()
    return workspace


async def _seed_user(session: AsyncSession, *, slack_user_id: str) -> User:
    user = User(
        email=f"{slack_user_id.lower()}@example.com",
        name=f"User {slack_user_id}",
        github_id=uuid4().int % 1_000_000_000,
        github_username=slack_user_id.lower(),
        slack_user_id=slack_user_id,
    )
    session.add(user)
    await session.commit()
    return user


async def _create(
    session: AsyncSession,
    workspace: Workspace,
    *,
    title: str = "Login button broken",
    reporter: str | None = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    ts: str | None = None,
) -> Task:
    message_ts = ts or f"1700000000.{uuid4().int % 1_000_000:06d}"
    return await create_task(
        session,
        workspace=workspace,
        title=title,
        description=title,
        priority=priority,
        task_type=TaskType.BUG,
        source=TaskSource(
            source_type=TaskSourceType.SLACK,
            slack_channel_id="C0BUGS",
            slack_message_ts=message_ts,
            slack_thread_ts=message_ts,
        ),
        reporter_slack_id=reporter,
    )


async def _activity(session: AsyncSession, task: Task) -> list[TaskActivity]:
    return await list_activity(session, task_id=task.id)


def test_apply_status_transition_stamps_and_clears_completed_at() -> None:
    task = Task(
        workspace_id=uuid4(),
        task_number=1,
        display_id="FIX-1",
        title="t",
        status="in_review",
    )
    first = datetime(2026, 1, 1, 12, 0, 0)
    later = first + timedelta(hours=1)

    assert apply_status_transition(task, TaskStatus.DONE, now=first) is TaskStatus.IN_REVIEW
    assert task.completed_at == first

    # Re-completing keeps the original completion time.
    apply_status_transition(task, TaskStatus.DONE, now=later)
    assert task.completed_at == first

    assert apply_status_transition(task, TaskStatus.TODO, now=later) is TaskStatus.DONE
    assert task.completed_at is None
    assert task.status == "todo"


@pytest.mark.asyncio
async def test_create_task_starts_in_backlog_with_one_created_entry() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            reporter = await _seed_user(session, slack_user_id="U100")

            task = await _create(session, workspace, reporter="U100")

            assert task.status == "backlog"
            assert task.display_id == "FIX-1"
            assert task.task_number == 1
            assert task.created_by_id == reporter.id
            assert task.labels == []
            assert task.completed_at is None

            entries = await _activity(session, task)
            assert [e.activity_type for e in entries] == ["created"]
            assert entries[0].user_id == reporter.id
            assert entries[0].details == {"source": "slack"}
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_create_task_with_unlinked_reporter_has_no_creator() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            task = await _create(session, workspace, reporter="U404")

            assert task.created_by_id is None
            entries = await _activity(session, task)
            assert len(entries) == 1
            assert entries[0].user_id is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_display_id_is_fixed_at_creation() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            task = await _create(session, workspace)

            workspace.slug = "ops-zzzz"
            session.add(workspace)
            await session.commit()
            second = await _create(session, workspace)

            refreshed = await Task.objects.by_id(task.id).first(session)
            assert refreshed is not None
            assert refreshed.display_id == "FIX-1"
            assert second.display_id == "OPS-2"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_change_status_to_done_from_in_review() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session, next_number=7)
            actor = await _seed_user(session, slack_user_id="U200")
            task = await _create(session, workspace)
            assert task.display_id == "FIX-7"
            await change_status(session, display_id="FIX-7", new_status=TaskStatus.IN_REVIEW)
            before = len(await _activity(session, task))

            result = await change_status(
                session,
                display_id="FIX-7",
                new_status=TaskStatus.DONE,
                actor_slack_id="U200",
            )

            assert result.ok
            assert result.old_status is TaskStatus.IN_REVIEW
            assert result.task.status == "done"
            assert result.task.completed_at is not None
            assert result.task.completed_at >= result.task.created_at

            entries = await _activity(session, task)
            assert len(entries) == before + 1
            last = entries[-1]
            assert last.activity_type == "status_changed"
            assert last.change_field == "status"
            assert last.old_value == "in_review"
            assert last.new_value == "done"
            assert last.user_id == actor.id
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_leaving_done_clears_completed_at() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            await _create(session, workspace)
            await change_status(session, display_id="FIX-1", new_status=TaskStatus.DONE)

            result = await change_status(
                session,
                display_id="FIX-1",
                new_status=TaskStatus.IN_PROGRESS,
            )

            assert result.ok
            assert result.task.status == "in_progress"
            assert result.task.completed_at is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_change_status_lookup_ignores_case() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            await _create(session, workspace)

            result = await change_status(
                session,
                display_id="fix-1",
                new_status=TaskStatus.TODO,
                workspace_id=workspace.id,
            )

            assert result.ok
            assert result.task.display_id == "FIX-1"
            assert await find_task_by_display_id(session, " Fix-1 ") is not None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_change_status_unknown_task_is_reported() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            await _seed_workspace(session)

            result = await change_status(session, display_id="FIX-99", new_status=TaskStatus.DONE)

            assert not result.ok
            assert result.code == "not_found"
            assert result.message == "Task FIX-99 not found"
            assert await TaskActivity.objects.all().all(session) == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_assign_to_unlinked_user_changes_nothing() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session, next_number=7)
            await _seed_user(session, slack_user_id="U200")
            task = await _create(session, workspace)
            updated_at = task.updated_at

            result = await assign_task(
                session,
                display_id="FIX-7",
                assignee_slack_id="U999",
                actor_slack_id="U200",
            )

            assert not result.ok
            assert result.code == "assignee_unlinked"
            assert "link their Slack account" in result.message

            stored = await Task.objects.by_id(task.id).first(session)
            assert stored is not None
            assert stored.assignee_id is None
            assert stored.updated_at == updated_at
            entries = await _activity(session, task)
            assert [e.activity_type for e in entries] == ["created"]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_assign_and_unassign_record_changes() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            actor = await _seed_user(session, slack_user_id="U200")
            assignee = await _seed_user(session, slack_user_id="U300")
            task = await _create(session, workspace)

            assigned = await assign_task(
                session,
                display_id="FIX-1",
                assignee_slack_id="U300",
                actor_slack_id="U200",
            )
            assert assigned.ok
            assert assigned.task.assignee_id == assignee.id
            assert assigned.previous_assignee_id is None

            unassigned = await unassign_task(session, display_id="FIX-1", actor_slack_id="U200")
            assert unassigned.ok
            assert unassigned.task.assignee_id is None
            assert unassigned.previous_assignee_id == assignee.id

            entries = await _activity(session, task)
            assert [e.activity_type for e in entries] == ["created", "assigned", "unassigned"]
            assert entries[1].new_value == str(assignee.id)
            assert entries[1].user_id == actor.id
            assert entries[2].old_value == str(assignee.id)
            assert entries[2].new_value is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_unassign_missing_task_is_reported() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            await _seed_workspace(session)
            result = await unassign_task(session, display_id="FIX-5")
            assert not result.ok
            assert result.code == "not_found"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_change_priority_records_old_and_new() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            task = await _create(session, workspace, priority=TaskPriority.LOW)

            result = await change_priority(
                session,
                display_id="FIX-1",
                new_priority=TaskPriority.CRITICAL,
            )

            assert result.ok
            assert result.old_priority is TaskPriority.LOW
            assert result.task.priority == "critical"
            last = (await _activity(session, task))[-1]
            assert last.activity_type == "priority_changed"
            assert (last.old_value, last.new_value) == ("low", "critical")
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_add_message_ignores_redelivered_slack_reply() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            author = await _seed_user(session, slack_user_id="U500")
            task = await _create(session, workspace)

            first = await add_message(
                session,
                task=task,
                content="Still happening on iOS",
                author_slack_id="U500",
                slack_message_ts="1700000001.000100",
            )
            again = await add_message(
                session,
                task=task,
                content="Still happening on iOS",
                author_slack_id="U500",
                slack_message_ts="1700000001.000100",
            )

            assert first is not None
            assert first.author_id == author.id
            assert first.content_type == "text"
            assert again is None
            assert len(await Message.objects.filter_by(task_id=task.id).all(session)) == 1
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_summarize_tasks_groups_by_status_and_priority() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            for index in range(7):
                await _create(session, workspace, title=f"Task {index}")
            await _create(session, workspace, title="High one", priority=TaskPriority.HIGH)
            for display_id in ("FIX-1", "FIX-2", "FIX-3", "FIX-4"):
                await change_status(session, display_id=display_id, new_status=TaskStatus.DONE)
            await change_status(session, display_id="FIX-5", new_status=TaskStatus.CANCELLED)

            summary = await summarize_tasks(session, workspace_id=workspace.id)

            assert summary.total == 7
            assert summary.active_count == 3
            assert "cancelled" not in summary.by_status
            assert summary.by_status["done"].count == 4
            assert len(summary.by_status["done"].tasks) == 3
            assert summary.by_status["backlog"].count == 3
            assert summary.by_status["backlog"].tasks[0].display_id == "FIX-8"
            assert summary.by_status["in_progress"].count == 0
            assert summary.by_priority == {"critical": 0, "high": 1, "medium": 6, "low": 0}
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_channel_summary_is_scoped_to_the_mapped_repository() -> None:
    engine = await _make_engine()
    try:
        async with _session_maker(engine)() as session:
            workspace = await _seed_workspace(session)
            repository = Repository(
                workspace_id=workspace.id,
                name="fixbot",
                full_name="acme/fixbot",
                clone_url="https://github.com/acme/fixbot.git",
                github_id=77,
                github_node_id="R_kgDO77",
            )
            session.add(repository)
            await session.commit()
            await upsert_channel_mapping(
                session,
                workspace_id=workspace.id,
                slack_channel_id="C0BUGS",
                slack_channel_name="bugs",
                repository_id=repository.id,
            )
            await _create(session, workspace, title="Unrouted")
            await create_task(
                session,
                workspace=workspace,
                title="Routed",
                description=None,
                priority=TaskPriority.LOW,
                task_type=TaskType.FEATURE,
                source=TaskSource(source_type=TaskSourceType.MANUAL),
                repository_id=repository.id,
            )

            scoped = await summarize_channel_tasks(
                session,
                workspace_id=workspace.id,
                slack_channel_id="C0BUGS",
            )
            unmapped = await summarize_channel_tasks(
                session,
                workspace_id=workspace.id,
                slack_channel_id="C0RANDOM",
            )

            assert scoped.total == 1
            assert scoped.by_status["backlog"].tasks[0].title == "Routed"
            assert unmapped.total == 2
    finally:
        await engine.dispose()
