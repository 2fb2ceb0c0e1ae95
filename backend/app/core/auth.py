"""Dashboard user authentication backed by opaque session tokens.

The token is read from the session cookie, or from an `Authorization: Bearer`
header for API clients, and exchanged for a user through the `sessions` table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.logging import get_logger
from app.core.time import utcnow
from app.db.session import get_session
from app.models.sessions import UserSession
from app.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)


@dataclass
class AuthContext:
    """Authenticated user context resolved from the session token."""

    actor_type: Literal["user"]
    user: User
    session_token: str


def _non_empty_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def extract_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = None,
) -> str | None:
    """Return the caller's session token, preferring the cookie."""
    cookie_token = _non_empty_str(request.cookies.get(settings.session_cookie_name))
    if cookie_token is not None:
        return cookie_token
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return _non_empty_str(credentials.credentials)
    return None


async def resolve_session_user(session: AsyncSession, token: str) -> User | None:
    """Exchange a session token for its active user; expired sessions resolve to None."""
    user_session = await UserSession.objects.filter_by(token=token).first(session)
    if user_session is None:
        return None
    if user_session.expires_at <= utcnow():
        logger.debug("auth.session.expired", extra={"user_id": str(user_session.user_id)})
        return None
    user = await User.objects.by_id(user_session.user_id).first(session)
    if user is None or not user.is_active:
        return None
    return user


async def delete_session(session: AsyncSession, token: str) -> bool:
    """Remove a session token; returns whether one existed."""
    user_session = await UserSession.objects.filter_by(token=token).first(session)
    if user_session is None:
        return False
    await session.delete(user_session)
    await session.commit()
    logger.info("auth.session.deleted", extra={"user_id": str(user_session.user_id)})
    return True


async def get_auth_context_optional(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext | None:
    """Resolve user context if available, otherwise return `None`."""
    token = extract_session_token(request, credentials)
    if token is None:
        return None
    user = await resolve_session_user(session, token)
    if user is None:
        return None
    return AuthContext(actor_type="user", user=user, session_token=token)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve required authenticated user context."""
    auth = await get_auth_context_optional(request, credentials, session)
    if auth is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return auth
