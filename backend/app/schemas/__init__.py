"""Public schema exports shared across API route modules."""

from app.schemas.activity import MessageRead, TaskActivityRead
from app.schemas.errors import ErrorResponse
from app.schemas.health import HealthStatusResponse
from app.schemas.repositories import (
    RepositoryCreate,
    RepositoryRead,
    RepositorySync,
    RepositoryUpdate,
)
from app.schemas.slack import SlackAck, SlackUrlVerification
from app.schemas.tasks import (
    TaskAssign,
    TaskPriorityUpdate,
    TaskRead,
    TaskStatusUpdate,
    TaskSummaryRead,
)
from app.schemas.users import SessionRead, UserRead
from app.schemas.workspaces import (
    ChannelMappingRead,
    ChannelMappingUpsert,
    WorkspaceInstall,
    WorkspaceRead,
    WorkspaceUpdate,
)

__all__ = [
    "ChannelMappingRead",
    "ChannelMappingUpsert",
    "ErrorResponse",
    "HealthStatusResponse",
    "MessageRead",
    "RepositoryCreate",
    "RepositoryRead",
    "RepositorySync",
    "RepositoryUpdate",
    "SessionRead",
    "SlackAck",
    "SlackUrlVerification",
    "TaskActivityRead",
    "TaskAssign",
    "TaskPriorityUpdate",
    "TaskRead",
    "TaskStatusUpdate",
    "TaskSummaryRead",
    "UserRead",
    "WorkspaceInstall",
    "WorkspaceRead",
    "WorkspaceUpdate",
]
