"""Dashboard session endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from app.api.deps import AUTH_OPTIONAL_DEP, SESSION_DEP
from app.core.auth import AuthContext, delete_session, extract_session_token, security
from app.core.config import settings
from app.schemas.users import SessionRead, UserRead

if TYPE_CHECKING:
    from fastapi.security import HTTPAuthorizationCredentials
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/auth", tags=["auth"])
SECURITY_DEP = Depends(security)


@router.get("/session", response_model=SessionRead)
async def get_current_session(auth: AuthContext | None = AUTH_OPTIONAL_DEP) -> SessionRead:
    """Report whether the caller's session token resolves to a user."""
    if auth is None:
        return SessionRead(authenticated=False)
    return SessionRead(
        authenticated=True,
        user=UserRead.model_validate(auth.user, from_attributes=True),
    )


@router.post("/logout")
async def logout(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> RedirectResponse:
    """Drop the session server-side, clear the cookie, and send the user to login."""
    token = extract_session_token(request, credentials)
    if token is not None:
        await delete_session(session, token)
    response = RedirectResponse(
        url=f"{settings.base_url.rstrip('/')}/login",
        status_code=status.HTTP_303_SEE_OTHER,
    )
    response.delete_cookie(settings.session_cookie_name)
    return response
