"""User service."""

import time
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pokerboard.logging_config import get_logger
from pokerboard.models import (
    GameSession,
    LoginSession,
    PlayerSession,
    PlayerStatus,
    SessionStatus,
    User,
)
from pokerboard.services import ledger
from pokerboard.services.auth import normalize_email
from pokerboard.utils.errors import ErrorCode, PokerboardError
from pokerboard.utils.security import (
    generate_temporary_password,
    hash_password,
    verify_password,
)

logger = get_logger(__name__)

SEARCH_LIMIT = 10
QUICK_CREATE_EMAIL_DOMAIN = "pokerboard.local"


class UserError(PokerboardError):
    """User operation error with code."""


class UserService:
    """Service for user management operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def _require_user(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        if not user:
            raise UserError(ErrorCode.USER_NOT_FOUND, "User not found", {"user_id": user_id})
        return user

    async def _ensure_email_free(self, email: str) -> None:
        result = await self.db.execute(
            select(User.id).where(func.lower(User.email) == normalize_email(email))
        )
        if result.scalar_one_or_none():
            raise UserError(ErrorCode.USER_EMAIL_EXISTS, "User already exists", {"email": email})

    async def search(self, query: str | None) -> list[User]:
        """Case-insensitive match on name or email among non-deleted users.

        Args:
            query: Search text; blank returns no users

        Returns:
            At most ten users ordered by name
        """
        if not query or not query.strip():
            return []

        pattern = f"%{query.strip().lower()}%"
        result = await self.db.execute(
            select(User)
            .where(
                User.is_deleted.is_(False),
                or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)),
            )
            .order_by(User.name)
            .limit(SEARCH_LIMIT)
        )
        return list(result.scalars().all())

    async def quick_create(self, name: str, email: str | None = None) -> User:
        """Create a player account on the fly with a random password.

        Without an email a placeholder ``temp_{epoch_ms}@pokerboard.local``
        address is generated.

        Raises:
            UserError: If the email is already registered
        """
        if email:
            email = normalize_email(email)
            await self._ensure_email_free(email)
        else:
            email = f"temp_{int(time.time() * 1000)}@{QUICK_CREATE_EMAIL_DOMAIN}"

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(generate_temporary_password()),
        )
        self.db.add(user)
        await self.db.flush()

        logger.info("user_quick_created", user_id=user.id)
        return user

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        is_admin: bool = False,
    ) -> User:
        """Admin-side user creation.

        Raises:
            UserError: If the email is already registered
        """
        await self._ensure_email_free(email)

        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=hash_password(password),
            is_admin=is_admin,
        )
        self.db.add(user)
        await self.db.flush()

        logger.info("user_created", user_id=user.id, is_admin=is_admin)
        return user

    async def list_users_with_stats(self) -> list[dict[str, Any]]:
        """Every user, deleted ones included, with lifetime game totals."""
        result = await self.db.execute(
            select(User)
            .options(
                selectinload(User.player_sessions).selectinload(PlayerSession.transactions)
            )
            .order_by(User.name)
        )

        rows = []
        for user in result.scalars().all():
            total_buy_ins = sum(ledger.total_buy_in(p) for p in user.player_sessions)
            total_cashouts = sum(ledger.cashed_out_amount(p) for p in user.player_sessions)
            rows.append(
                {
                    "user": user,
                    "total_games": len(user.player_sessions),
                    "total_buy_ins": total_buy_ins,
                    "total_cashouts": total_cashouts,
                    "net_profit": total_cashouts - total_buy_ins,
                }
            )
        return rows

    async def get_user_detail(self, user_id: str) -> tuple[User, list[PlayerSession]]:
        """A user and every seat they took, newest game first.

        Each seat comes with its session summary, user and ledger rows.
        """
        user = await self.db.get(User, user_id)
        if not user:
            raise UserError(ErrorCode.USER_NOT_FOUND, "User not found", {"user_id": user_id})

        result = await self.db.execute(
            select(PlayerSession)
            .join(GameSession, PlayerSession.session_id == GameSession.id)
            .where(PlayerSession.user_id == user_id)
            .options(
                selectinload(PlayerSession.user),
                selectinload(PlayerSession.transactions),
                selectinload(PlayerSession.session),
            )
            .order_by(GameSession.date.desc())
        )
        return user, list(result.scalars().all())

    async def _has_open_games(self, user_id: str) -> bool:
        """Seated in, playing in or hosting an unfinished game."""
        active_seat = await self.db.execute(
            select(PlayerSession.id)
            .join(GameSession, PlayerSession.session_id == GameSession.id)
            .where(
                PlayerSession.user_id == user_id,
                or_(
                    PlayerSession.status == PlayerStatus.ACTIVE,
                    GameSession.status == SessionStatus.ONGOING,
                ),
            )
            .limit(1)
        )
        if active_seat.scalar_one_or_none():
            return True

        hosting = await self.db.execute(
            select(GameSession.id)
            .where(GameSession.host_id == user_id, GameSession.status == SessionStatus.ONGOING)
            .limit(1)
        )
        return hosting.scalar_one_or_none() is not None

    async def soft_delete(self, user_id: str, admin: User) -> User:
        """Hide a user and end their logins; game history is kept.

        Raises:
            UserError: If the user is still in an unfinished game
        """
        user = await self._require_user(user_id)

        if await self._has_open_games(user_id):
            raise UserError(
                ErrorCode.USER_HAS_ACTIVE_SESSIONS,
                "User has active game sessions",
                {"user_id": user_id},
            )

        user.is_deleted = True
        user.deleted_at = datetime.now(timezone.utc)

        await self.db.execute(delete(LoginSession).where(LoginSession.user_id == user_id))
        await self.db.flush()

        logger.info("user_soft_deleted", user_id=user_id, deleted_by=admin.id)
        return user

    async def restore(self, user_id: str, admin: User) -> User:
        """Undo a soft delete.

        Raises:
            UserError: If the user is not deleted
        """
        user = await self._require_user(user_id)

        if not user.is_deleted:
            raise UserError(ErrorCode.USER_NOT_DELETED, "User is not deleted", {"user_id": user_id})

        user.is_deleted = False
        user.deleted_at = None
        await self.db.flush()

        logger.info("user_restored", user_id=user_id, restored_by=admin.id)
        return user

    async def promote_first_admin(self, user: User) -> User:
        """Make the caller admin while the system has none.

        Raises:
            UserError: If an admin already exists
        """
        result = await self.db.execute(
            select(func.count(User.id)).where(User.is_admin.is_(True))
        )
        if result.scalar_one() > 0:
            raise UserError(ErrorCode.ADMIN_ALREADY_EXISTS, "An admin user already exists")

        user.is_admin = True
        await self.db.flush()

        logger.info("first_admin_promoted", user_id=user.id)
        return user

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
    ) -> None:
        """Change a signed-in user's password.

        Raises:
            UserError: If the current password is wrong
        """
        if not verify_password(current_password, user.password_hash):
            raise UserError(ErrorCode.USER_INVALID_PASSWORD, "Current password is incorrect")

        user.password_hash = hash_password(new_password)
        await self.db.flush()

        logger.info("password_changed", user_id=user.id)
