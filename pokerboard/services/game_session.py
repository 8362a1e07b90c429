"""Game session service: lifecycle, cost settings and table balance."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pokerboard.logging_config import get_logger
from pokerboard.middleware.prometheus import record_session_created
from pokerboard.models import (
    DEFAULT_GAME_TYPE,
    GameSession,
    PlayerSession,
    PlayerStatus,
    SessionSettlement,
    SessionStatus,
    Transaction,
    TransactionType,
    User,
)
from pokerboard.services import ledger
from pokerboard.utils.errors import ErrorCode, PokerboardError

logger = get_logger(__name__)


class SessionError(PokerboardError):
    """Game session operation error."""


def can_manage(user: User, game_session: GameSession) -> bool:
    """Host or admin."""
    return user.is_admin or game_session.host_id == user.id


def ensure_can_manage(user: User, game_session: GameSession) -> None:
    if not can_manage(user, game_session):
        raise SessionError(
            ErrorCode.SESSION_FORBIDDEN,
            "Only the host or an admin can manage this session",
            {"session_id": game_session.id},
        )


def participants_loader():
    """Eager-load participants with their user and ledger rows."""
    return selectinload(GameSession.participants).options(
        selectinload(PlayerSession.user),
        selectinload(PlayerSession.transactions),
    )


class GameSessionService:
    """Service for game session operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_session(self, session_id: str) -> GameSession:
        """Load a session with host and participant ledgers.

        Always re-reads from the database so collections reflect rows added
        earlier in the same request.

        Raises:
            SessionError: If the session does not exist
        """
        result = await self.db.execute(
            select(GameSession)
            .where(GameSession.id == session_id)
            .options(selectinload(GameSession.host), participants_loader())
            .execution_options(populate_existing=True)
        )
        game_session = result.scalar_one_or_none()
        if not game_session:
            raise SessionError(
                ErrorCode.SESSION_NOT_FOUND,
                "Session not found",
                {"session_id": session_id},
            )
        return game_session

    async def get_managed_session(self, session_id: str, user: User) -> GameSession:
        """Load a session the user is allowed to manage."""
        game_session = await self.get_session(session_id)
        ensure_can_manage(user, game_session)
        return game_session

    async def create_session(
        self,
        host: User,
        date: datetime,
        buy_in: float,
        players: Sequence[tuple[str, float]],
        location: str | None = None,
        game_type: str | None = None,
    ) -> GameSession:
        """Create a session, its players and their BUY_IN rows.

        Args:
            host: Creating user, becomes the host
            date: When the game is played
            buy_in: Minimum buy-in of the table
            players: ``(user_id, buy_in)`` pairs of the starting players
            location: Optional venue
            game_type: Defaults to No Limit Hold'em

        Raises:
            SessionError: On an empty or duplicate player list, a non-positive
                buy-in or an unknown user
        """
        if not players:
            raise SessionError(ErrorCode.SESSION_NO_PLAYERS, "At least one player is required")

        user_ids = [user_id for user_id, _ in players]
        if len(set(user_ids)) != len(user_ids):
            raise SessionError(ErrorCode.PLAYER_DUPLICATE, "A player can only be added once")

        for user_id, amount in players:
            if amount <= 0:
                raise SessionError(
                    ErrorCode.INVALID_AMOUNT,
                    "Buy-in must be greater than zero",
                    {"user_id": user_id},
                )

        result = await self.db.execute(
            select(User.id).where(User.id.in_(user_ids), User.is_deleted.is_(False))
        )
        missing = set(user_ids) - set(result.scalars().all())
        if missing:
            raise SessionError(
                ErrorCode.USER_NOT_FOUND,
                "User not found",
                {"user_ids": sorted(missing)},
            )

        game_session = GameSession(
            date=date,
            location=location or None,
            game_type=game_type or DEFAULT_GAME_TYPE,
            buy_in=buy_in,
            status=SessionStatus.ONGOING,
            host_id=host.id,
        )
        self.db.add(game_session)
        await self.db.flush()

        seats = []
        for user_id, amount in players:
            player = PlayerSession(
                user_id=user_id,
                session_id=game_session.id,
                initial_buy_in=amount,
                current_stack=amount,
                status=PlayerStatus.ACTIVE,
            )
            self.db.add(player)
            seats.append((player, amount))
        await self.db.flush()

        for player, amount in seats:
            self.db.add(ledger.new_transaction(player, TransactionType.BUY_IN, amount))
        await self.db.flush()

        record_session_created()
        logger.info(
            "session_created",
            session_id=game_session.id,
            host_id=host.id,
            players=len(seats),
        )
        return await self.get_session(game_session.id)

    async def list_sessions(
        self,
        status: SessionStatus | None = None,
        host_id: str | None = None,
    ) -> list[GameSession]:
        """Sessions newest first, optionally filtered."""
        query = select(GameSession).options(
            selectinload(GameSession.host),
            participants_loader(),
        )
        if status:
            query = query.where(GameSession.status == status)
        if host_id:
            query = query.where(GameSession.host_id == host_id)

        result = await self.db.execute(query.order_by(GameSession.date.desc()))
        return list(result.scalars().all())

    async def delete_session(self, session_id: str, user: User) -> None:
        """Delete a session with its settlements, ledger and players."""
        # Plain lookup: loaded participant collections would make the unit of
        # work try to null their foreign keys after the bulk deletes below.
        game_session = await self.db.get(GameSession, session_id)
        if not game_session:
            raise SessionError(
                ErrorCode.SESSION_NOT_FOUND,
                "Session not found",
                {"session_id": session_id},
            )
        ensure_can_manage(user, game_session)

        await self.db.execute(
            delete(SessionSettlement).where(SessionSettlement.session_id == session_id)
        )
        await self.db.execute(delete(Transaction).where(Transaction.session_id == session_id))
        await self.db.execute(delete(PlayerSession).where(PlayerSession.session_id == session_id))
        await self.db.execute(delete(GameSession).where(GameSession.id == session_id))

        logger.info("session_deleted", session_id=session_id, deleted_by=user.id)

    async def update_status(
        self,
        session_id: str,
        user: User,
        status: SessionStatus,
    ) -> GameSession:
        """Change the session status.

        Raises:
            SessionError: When completing a session that still has ACTIVE players
        """
        game_session = await self.get_managed_session(session_id, user)

        if status == SessionStatus.COMPLETED:
            active = ledger.active_players(game_session.participants)
            if active:
                raise SessionError(
                    ErrorCode.SESSION_HAS_ACTIVE_PLAYERS,
                    "Cannot complete session while players are still active",
                    {"active_players": [p.user.name for p in active]},
                )

        game_session.status = status
        await self.db.flush()

        logger.info("session_status_changed", session_id=session_id, status=status.value)
        return game_session

    async def update_cost(
        self,
        session_id: str,
        user: User,
        session_cost: float,
        discount: float | None = None,
    ) -> GameSession:
        """Set the shared session cost, and the discount when given."""
        if session_cost < 0:
            raise SessionError(ErrorCode.INVALID_AMOUNT, "Session cost cannot be negative")

        game_session = await self.get_managed_session(session_id, user)
        game_session.session_cost = session_cost
        if discount is not None:
            game_session.discount = discount
        await self.db.flush()

        logger.info(
            "session_cost_updated",
            session_id=session_id,
            session_cost=session_cost,
            discount=game_session.discount,
        )
        return game_session

    async def balance_info(self, session_id: str, user: User, player_id: str) -> dict[str, Any]:
        """What the given player must cash out if they are the last one seated.

        Returns ``{"is_last_player": False}`` unless ``player_id`` is the only
        remaining ACTIVE participant.
        """
        game_session = await self.get_managed_session(session_id, user)

        active = ledger.active_players(game_session.participants)
        if len(active) != 1 or active[0].id != player_id:
            return {"is_last_player": False}

        total_in, total_out = ledger.session_totals(game_session.participants)
        return {
            "is_last_player": True,
            "required_cash_out": max(0.0, total_in - total_out),
            "total_buy_ins": total_in,
            "total_cash_out": total_out,
        }
