"""Initial schema: workspaces, repositories, channels, users, tasks, activity.

Revision ID: 5e1c7a9d3b20
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5e1c7a9d3b20"
down_revision = None
branch_labels = None
depends_on = None

TASK_STATUSES = "'backlog', 'todo', 'in_progress', 'in_review', 'done', 'cancelled'"
TASK_PRIORITIES = "'critical', 'high', 'medium', 'low'"
TASK_TYPES = "'bug', 'feature', 'improvement', 'task', 'question'"
TASK_SOURCES = "'slack', 'manual', 'github', 'api'"
ACTIVITY_TYPES = (
    "'created', 'status_changed', 'assigned', 'unassigned', 'priority_changed', "
    "'repo_linked', 'comment_added', 'claude_code_started', 'claude_code_completed', "
    "'pr_created', 'pr_merged'"
)


def upgrade() -> None:
    op.create_table(
        "workspaces",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("slack_team_id", sa.String(), nullable=False),
        sa.Column("slack_team_name", sa.String(), nullable=False),
        sa.Column("slack_bot_user_id", sa.String(), nullable=True),
        sa.Column("ai_extraction_enabled", sa.Boolean(), nullable=False),
        sa.Column("default_task_priority", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_workspaces_slug"), "workspaces", ["slug"])
    op.create_index(
        op.f("ix_workspaces_slack_team_id"),
        "workspaces",
        ["slack_team_id"],
        unique=True,
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column("github_id", sa.Integer(), nullable=False),
        sa.Column("github_username", sa.String(), nullable=False),
        sa.Column("slack_user_id", sa.String(), nullable=True),
        sa.Column("slack_username", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"])
    op.create_index(op.f("ix_users_github_id"), "users", ["github_id"], unique=True)
    op.create_index(op.f("ix_users_slack_user_id"), "users", ["slack_user_id"], unique=True)

    op.create_table(
        "sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sessions_user_id"), "sessions", ["user_id"])
    op.create_index(op.f("ix_sessions_token"), "sessions", ["token"], unique=True)

    op.create_table(
        "repositories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("clone_url", sa.String(), nullable=False),
        sa.Column("default_branch", sa.String(), nullable=False),
        sa.Column("github_id", sa.Integer(), nullable=False),
        sa.Column("github_node_id", sa.String(), nullable=False),
        sa.Column("code_fix_enabled", sa.Boolean(), nullable=False),
        sa.Column("branch_prefix", sa.String(), nullable=True),
        sa.Column("auto_create_branches", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_repositories_workspace_id"), "repositories", ["workspace_id"])
    op.create_index(
        op.f("ix_repositories_github_id"),
        "repositories",
        ["github_id"],
        unique=True,
    )
    op.create_index(op.f("ix_repositories_is_active"), "repositories", ["is_active"])

    op.create_table(
        "channel_mappings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("repository_id", sa.Uuid(), nullable=True),
        sa.Column("slack_channel_id", sa.String(), nullable=False),
        sa.Column("slack_channel_name", sa.String(), nullable=False),
        sa.Column("auto_extract_tasks", sa.Boolean(), nullable=False),
        sa.Column("mention_required", sa.Boolean(), nullable=False),
        sa.Column("default_priority", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"]),
        sa.ForeignKeyConstraint(["repository_id"], ["repositories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_channel_mappings_workspace_id"),
        "channel_mappings",
        ["workspace_id"],
    )
    op.create_index(
        op.f("ix_channel_mappings_repository_id"),
        "channel_mappings",
        ["repository_id"],
    )
    op.create_index(
        op.f("ix_channel_mappings_slack_channel_id"),
        "channel_mappings",
        ["slack_channel_id"],
    )
    op.create_index(op.f("ix_channel_mappings_is_active"), "channel_mappings", ["is_active"])

    op.create_table(
        "workspace_counters",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("counter_type", sa.String(), nullable=False),
        sa.Column("current_value", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "workspace_id",
            "counter_type",
            name="uq_workspace_counters_workspace_type",
        ),
        sa.CheckConstraint(
            "counter_type IN ('task_number')",
            name="ck_workspace_counters_counter_type",
        ),
    )
    op.create_index(
        op.f("ix_workspace_counters_workspace_id"),
        "workspace_counters",
        ["workspace_id"],
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("repository_id", sa.Uuid(), nullable=True),
        sa.Column("task_number", sa.Integer(), nullable=False),
        sa.Column("display_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("priority", sa.String(), nullable=False),
        sa.Column("task_type", sa.String(), nullable=False),
        sa.Column("assignee_id", sa.Uuid(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), nullable=True),
        sa.Column("source_type", sa.String(), nullable=False),
        sa.Column("slack_channel_id", sa.String(), nullable=True),
        sa.Column("slack_channel_name", sa.String(), nullable=True),
        sa.Column("slack_message_ts", sa.String(), nullable=True),
        sa.Column("slack_thread_ts", sa.String(), nullable=True),
        sa.Column("slack_permalink", sa.String(), nullable=True),
        sa.Column("github_issue_number", sa.Integer(), nullable=True),
        sa.Column("github_issue_url", sa.String(), nullable=True),
        sa.Column("code_context", sa.JSON(), nullable=True),
        sa.Column("ai_extraction", sa.JSON(), nullable=True),
        sa.Column("claude_code_execution", sa.JSON(), nullable=True),
        sa.Column("labels", sa.JSON(), nullable=False),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"]),
        sa.ForeignKeyConstraint(["repository_id"], ["repositories.id"]),
        sa.ForeignKeyConstraint(["assignee_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workspace_id", "task_number", name="uq_tasks_workspace_number"),
        sa.UniqueConstraint("workspace_id", "display_id", name="uq_tasks_workspace_display_id"),
        sa.CheckConstraint(f"status IN ({TASK_STATUSES})", name="ck_tasks_status"),
        sa.CheckConstraint(f"priority IN ({TASK_PRIORITIES})", name="ck_tasks_priority"),
        sa.CheckConstraint(f"task_type IN ({TASK_TYPES})", name="ck_tasks_task_type"),
        sa.CheckConstraint(f"source_type IN ({TASK_SOURCES})", name="ck_tasks_source_type"),
    )
    for column in (
        "workspace_id",
        "repository_id",
        "display_id",
        "status",
        "priority",
        "assignee_id",
        "created_by_id",
    ):
        op.create_index(op.f(f"ix_tasks_{column}"), "tasks", [column])
    op.create_index(
        "ix_tasks_slack_thread",
        "tasks",
        ["workspace_id", "slack_channel_id", "slack_thread_ts"],
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=True),
        sa.Column("content", sa.String(), nullable=False),
        sa.Column("content_type", sa.String(), nullable=False),
        sa.Column("slack_message_ts", sa.String(), nullable=True),
        sa.Column("ai_generated", sa.JSON(), nullable=True),
        sa.Column("is_edited", sa.Boolean(), nullable=False),
        sa.Column("edited_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("task_id", "slack_message_ts", name="uq_messages_task_slack_ts"),
        sa.CheckConstraint(
            "content_type IN ('text', 'markdown', 'system')",
            name="ck_messages_content_type",
        ),
    )
    op.create_index(op.f("ix_messages_task_id"), "messages", ["task_id"])
    op.create_index(op.f("ix_messages_author_id"), "messages", ["author_id"])
    op.create_index(op.f("ix_messages_created_at"), "messages", ["created_at"])

    op.create_table(
        "task_activity",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("activity_type", sa.String(), nullable=False),
        sa.Column("change_field", sa.String(), nullable=True),
        sa.Column("old_value", sa.String(), nullable=True),
        sa.Column("new_value", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            f"activity_type IN ({ACTIVITY_TYPES})",
            name="ck_task_activity_activity_type",
        ),
    )
    op.create_index(op.f("ix_task_activity_task_id"), "task_activity", ["task_id"])
    op.create_index(op.f("ix_task_activity_user_id"), "task_activity", ["user_id"])
    op.create_index(
        op.f("ix_task_activity_activity_type"),
        "task_activity",
        ["activity_type"],
    )


def downgrade() -> None:
    for table in (
        "task_activity",
        "messages",
        "tasks",
        "workspace_counters",
        "channel_mappings",
        "repositories",
        "sessions",
        "users",
        "workspaces",
    ):
        op.drop_table(table)
