"""API dependencies for authentication and common utilities."""

import uuid
from typing import Annotated

from fastapi import Depends, Header, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pokerboard.config import get_settings
from pokerboard.logging_config import bind_context
from pokerboard.middleware.sentry import set_user_context
from pokerboard.models import User
from pokerboard.services.auth import AuthService
from pokerboard.services.email import EmailService, get_email_service
from pokerboard.utils.db import get_db
from pokerboard.utils.errors import ErrorCode, auth_exception
from pokerboard.utils.security import TokenError, verify_access_token

settings = get_settings()

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


def get_trace_id(x_trace_id: Annotated[str | None, Header()] = None) -> str:
    """Get or generate trace ID for request tracking."""
    return x_trace_id or str(uuid.uuid4())


def _extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Bearer header first, then the session cookie set at login."""
    if credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current user from the access token (required auth).

    Raises:
        HTTPException: If not authenticated, the token is invalid or the
            account has been deleted
    """
    token = _extract_token(request, credentials)
    if not token:
        raise auth_exception(ErrorCode.AUTH_REQUIRED, "Authentication required")

    try:
        payload = verify_access_token(token)
    except TokenError as e:
        raise auth_exception(ErrorCode.AUTH_INVALID_TOKEN, e.message)

    if not payload or not payload.get("sub"):
        raise auth_exception(ErrorCode.AUTH_INVALID_TOKEN, "Invalid or expired token")

    auth_service = AuthService(db)
    session_id = payload.get("sid")
    if session_id and not await auth_service.login_session_exists(payload["sub"], session_id):
        raise auth_exception(ErrorCode.AUTH_SESSION_EXPIRED, "Session has ended, please sign in again")

    user = await auth_service.get_user_by_id(payload["sub"])

    if not user:
        raise auth_exception(ErrorCode.AUTH_USER_NOT_FOUND, "User not found")

    if user.is_deleted:
        raise auth_exception(
            ErrorCode.AUTH_ACCOUNT_INACTIVE,
            "Account has been deleted",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    request.state.login_session_id = session_id
    bind_context(user_id=user.id)
    set_user_context(user.id, user.email)
    return user


async def get_current_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Current user, which must be an admin."""
    if not user.is_admin:
        raise auth_exception(
            ErrorCode.ADMIN_REQUIRED,
            "Admin access required",
            status_code=status.HTTP_403_FORBIDDEN,
        )
    return user


def get_client_info(request: Request) -> dict[str, str | None]:
    """Extract user agent and IP address from the request."""
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


# Type aliases for cleaner annotations
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_current_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
TraceId = Annotated[str, Depends(get_trace_id)]
Mailer = Annotated[EmailService, Depends(get_email_service)]
ClientInfo = Annotated[dict[str, str | None], Depends(get_client_info)]
