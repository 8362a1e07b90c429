"""Authentication service: login sessions and password recovery."""

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pokerboard.config import get_settings
from pokerboard.logging_config import get_logger
from pokerboard.models import LoginSession, User
from pokerboard.services.email import EmailError, EmailService
from pokerboard.utils.errors import ErrorCode, PokerboardError
from pokerboard.utils.formatting import ensure_utc
from pokerboard.utils.security import (
    create_token_pair,
    generate_reset_token,
    generate_session_id,
    hash_password,
    hash_token,
    verify_password,
    verify_refresh_token,
)

settings = get_settings()
logger = get_logger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists, you will receive a password reset email"


class AuthError(PokerboardError):
    """Authentication error with code."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession, email_service: EmailService | None = None):
        self.db = db
        self.email = email_service or EmailService()

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def login_session_exists(self, user_id: str, session_id: str) -> bool:
        result = await self.db.execute(
            select(LoginSession.id).where(
                LoginSession.id == session_id,
                LoginSession.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    # -------------------------------------------------------------------------
    # Registration / login
    # -------------------------------------------------------------------------

    async def register(self, name: str, email: str, password: str) -> User:
        """Create an account and send the welcome email.

        The welcome email is best-effort: a delivery failure is logged and
        the account is still created.

        Raises:
            AuthError: If the email is already registered
        """
        if await self.get_user_by_email(email):
            raise AuthError(ErrorCode.USER_EMAIL_EXISTS, "User already exists")

        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=hash_password(password),
        )
        self.db.add(user)
        await self.db.flush()

        try:
            await self.email.send_welcome(user.email, user.name)
        except EmailError:
            logger.warning("welcome_email_failed", user_id=user.id)

        logger.info("user_registered", user_id=user.id)
        return user

    async def login(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        """Authenticate a user and create a login session.

        Returns:
            Dict with ``user`` and ``tokens``

        Raises:
            AuthError: If credentials are invalid or the account is deleted
        """
        user = await self.get_user_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            raise AuthError(ErrorCode.AUTH_INVALID_CREDENTIALS, "Invalid email or password")

        if user.is_deleted:
            raise AuthError(ErrorCode.AUTH_ACCOUNT_INACTIVE, "Account has been deleted")

        await self._enforce_session_limit(user.id)

        tokens = await self._open_session(user, user_agent, ip_address)
        return {"user": user, "tokens": tokens}

    async def _open_session(
        self,
        user: User,
        user_agent: str | None,
        ip_address: str | None,
    ) -> dict[str, Any]:
        session_id = generate_session_id()
        tokens = create_token_pair(user.id, session_id)

        self.db.add(
            LoginSession(
                id=session_id,
                user_id=user.id,
                refresh_token_hash=hash_token(tokens["refresh_token"]),
                user_agent=user_agent,
                ip_address=ip_address,
                expires_at=datetime.now(timezone.utc)
                + timedelta(days=settings.jwt_refresh_token_expire_days),
            )
        )
        await self.db.flush()
        return tokens

    async def _enforce_session_limit(self, user_id: str) -> None:
        """Drop the oldest login sessions so a new one fits under the cap."""
        result = await self.db.execute(
            select(LoginSession)
            .where(LoginSession.user_id == user_id)
            .order_by(LoginSession.created_at.asc())
        )
        sessions = list(result.scalars().all())

        sessions_to_remove = len(sessions) - settings.max_login_sessions_per_user + 1
        if sessions_to_remove > 0:
            for session in sessions[:sessions_to_remove]:
                await self.db.delete(session)

    async def refresh_tokens(
        self,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        """Rotate the token pair of an existing login session.

        Raises:
            AuthError: If the refresh token is invalid or expired
        """
        payload = verify_refresh_token(refresh_token)
        if not payload:
            raise AuthError(ErrorCode.AUTH_INVALID_TOKEN, "Invalid refresh token")

        user_id = payload["sub"]
        result = await self.db.execute(
            select(LoginSession).where(
                LoginSession.user_id == user_id,
                LoginSession.refresh_token_hash == hash_token(refresh_token),
            )
        )
        session = result.scalar_one_or_none()

        if not session:
            raise AuthError(ErrorCode.AUTH_INVALID_TOKEN, "Session not found")

        now = datetime.now(timezone.utc)
        if ensure_utc(session.expires_at) < now:
            raise AuthError(ErrorCode.AUTH_SESSION_EXPIRED, "Session has expired")

        user = await self.get_user_by_id(user_id)
        if not user or user.is_deleted:
            raise AuthError(ErrorCode.AUTH_ACCOUNT_INACTIVE, "Account is not active")

        tokens = create_token_pair(user.id, session.id)

        session.refresh_token_hash = hash_token(tokens["refresh_token"])
        session.last_seen_at = now
        session.user_agent = user_agent or session.user_agent
        session.ip_address = ip_address or session.ip_address
        session.expires_at = now + timedelta(days=settings.jwt_refresh_token_expire_days)

        return tokens

    async def logout(self, user_id: str, session_id: str | None = None) -> None:
        """End one login session, or all of them without a session id."""
        query = select(LoginSession).where(LoginSession.user_id == user_id)
        if session_id:
            query = query.where(LoginSession.id == session_id)

        result = await self.db.execute(query)
        for session in result.scalars().all():
            await self.db.delete(session)

        logger.info("user_logged_out", user_id=user_id, all_sessions=session_id is None)

    # -------------------------------------------------------------------------
    # Password recovery
    # -------------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> str:
        """Issue a reset token and email the link.

        Unknown emails get the same answer as known ones. If the email cannot
        be sent the token is withdrawn again before the error propagates.

        Returns:
            The generic confirmation message

        Raises:
            EmailError: If the reset email could not be delivered
        """
        user = await self.get_user_by_email(email)
        if not user or user.is_deleted:
            logger.info("password_reset_unknown_email")
            return FORGOT_PASSWORD_MESSAGE

        token = generate_reset_token()
        user.reset_token_hash = hash_token(token)
        user.reset_token_expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=settings.reset_token_expire_minutes
        )
        await self.db.flush()

        reset_link = f"{settings.app_base_url.rstrip('/')}/auth/reset-password?token={token}"
        try:
            await self.email.send_password_reset(user.email, reset_link)
        except EmailError:
            user.reset_token_hash = None
            user.reset_token_expires_at = None
            logger.warning("password_reset_email_failed", user_id=user.id)
            raise

        logger.info("password_reset_requested", user_id=user.id)
        return FORGOT_PASSWORD_MESSAGE

    async def _user_for_reset_token(self, token: str) -> User:
        result = await self.db.execute(
            select(User).where(
                User.reset_token_hash == hash_token(token),
                User.reset_token_expires_at > datetime.now(timezone.utc),
            )
        )
        user = result.scalar_one_or_none()
        if not user:
            raise AuthError(ErrorCode.RESET_TOKEN_INVALID, "Invalid or expired reset token")
        return user

    async def verify_reset_token(self, token: str) -> bool:
        """Raise AuthError unless the token is live."""
        await self._user_for_reset_token(token)
        return True

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password and consume the token."""
        user = await self._user_for_reset_token(token)
        user.password_hash = hash_password(new_password)
        user.reset_token_hash = None
        user.reset_token_expires_at = None

        # Force every device to sign in again with the new password
        await self.logout(user.id)
        logger.info("password_reset_completed", user_id=user.id)

    async def fix_password(self, email: str, current_password: str, new_password: str) -> None:
        """Change a password given the email and the current password."""
        user = await self.get_user_by_email(email)
        if not user or not verify_password(current_password, user.password_hash):
            raise AuthError(ErrorCode.AUTH_INVALID_CREDENTIALS, "Invalid email or password")

        if user.is_deleted:
            raise AuthError(ErrorCode.AUTH_ACCOUNT_INACTIVE, "Account has been deleted")

        user.password_hash = hash_password(new_password)
        logger.info("password_fixed", user_id=user.id)
