"""Settlement service: preview, save and fetch final results of a session."""

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pokerboard.logging_config import get_logger
from pokerboard.middleware.prometheus import record_settlement_saved
from pokerboard.models import SessionSettlement, User
from pokerboard.services.game_session import GameSessionService
from pokerboard.services.settlement_calculator import (
    SettlementSummary,
    calculate_settlement,
    can_settle,
    player_results,
)
from pokerboard.utils.errors import ErrorCode, PokerboardError

logger = get_logger(__name__)


class SettlementError(PokerboardError):
    """Settlement operation error."""


@dataclass
class SettlementResult:
    """One player's settled figures as submitted for saving."""

    user_id: str
    profit_loss: float
    cost_share: float
    final_profit: float


class SettlementService:
    """Service for session settlements."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.sessions = GameSessionService(db)

    async def preview(
        self,
        session_id: str,
        user: User,
        session_cost: float | None = None,
        discount: float | None = None,
    ) -> tuple[SettlementSummary, bool]:
        """Calculate without saving.

        The stored cost and discount of the session are used unless
        overridden.

        Returns:
            ``(summary, can_settle)``
        """
        game_session = await self.sessions.get_managed_session(session_id, user)

        if session_cost is None:
            session_cost = game_session.session_cost
        if discount is None:
            discount = game_session.discount

        summary = calculate_settlement(
            player_results(game_session),
            session_cost=session_cost,
            discount=discount,
        )
        return summary, can_settle(game_session)

    async def save_results(
        self,
        session_id: str,
        user: User,
        results: Sequence[SettlementResult],
    ) -> int:
        """Replace the session's settlement rows with ``results``.

        Old rows are deleted and new rows inserted in the same transaction.

        Returns:
            Number of rows saved

        Raises:
            SettlementError: On an empty result list or a user who did not
                play in the session
        """
        game_session = await self.sessions.get_managed_session(session_id, user)

        if not results:
            raise SettlementError(ErrorCode.SETTLEMENT_EMPTY, "No settlement results given")

        seated = {p.user_id for p in game_session.participants}
        unknown = sorted({r.user_id for r in results} - seated)
        if unknown:
            raise SettlementError(
                ErrorCode.PLAYER_NOT_FOUND,
                "Settlement names a user who did not play in this session",
                {"user_ids": unknown},
            )

        await self.db.execute(
            delete(SessionSettlement).where(SessionSettlement.session_id == session_id)
        )
        for result in results:
            self.db.add(
                SessionSettlement(
                    session_id=session_id,
                    player_id=result.user_id,
                    original_profit_loss=result.profit_loss,
                    session_cost_share=result.cost_share,
                    final_amount=result.final_profit,
                )
            )
        await self.db.flush()

        record_settlement_saved()
        logger.info("settlement_saved", session_id=session_id, rows=len(results), saved_by=user.id)
        return len(results)

    async def calculate_and_save(self, session_id: str, user: User) -> int:
        """Settle a finished session from its stored cost and discount.

        Raises:
            SettlementError: If the session is not completed or a player is
                still seated
        """
        game_session = await self.sessions.get_managed_session(session_id, user)

        if not can_settle(game_session):
            raise SettlementError(
                ErrorCode.SETTLEMENT_NOT_ALLOWED,
                "Session must be completed with every player cashed out",
                {"status": game_session.status.value},
            )

        summary = calculate_settlement(
            player_results(game_session),
            session_cost=game_session.session_cost,
            discount=game_session.discount,
        )
        return await self.save_results(
            session_id,
            user,
            [
                SettlementResult(
                    user_id=line.user_id,
                    profit_loss=line.profit_loss,
                    cost_share=line.cost_share,
                    final_profit=line.final_profit,
                )
                for line in summary.lines
            ],
        )

    async def list_settlements(self, session_id: str) -> list[SessionSettlement]:
        """Saved rows of a session, newest first."""
        await self.sessions.get_session(session_id)

        result = await self.db.execute(
            select(SessionSettlement)
            .where(SessionSettlement.session_id == session_id)
            .options(selectinload(SessionSettlement.player))
            .order_by(SessionSettlement.created_at.desc())
        )
        return list(result.scalars().all())
