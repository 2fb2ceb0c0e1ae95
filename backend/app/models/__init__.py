"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from app.models.channel_mappings import ChannelMapping
from app.models.messages import Message
from app.models.repositories import Repository
from app.models.sessions import UserSession
from app.models.task_activity import TaskActivity
from app.models.tasks import Task
from app.models.users import User
from app.models.workspace_counters import WorkspaceCounter
from app.models.workspaces import Workspace

__all__ = [
    "ChannelMapping",
    "Message",
    "Repository",
    "Task",
    "TaskActivity",
    "User",
    "UserSession",
    "Workspace",
    "WorkspaceCounter",
]
