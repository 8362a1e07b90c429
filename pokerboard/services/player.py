"""Player service: seats, chip moves and leaving/rejoining a table.

Every chip move updates ``current_stack`` and writes the matching ledger
row inside the request transaction.
"""

import math
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from pokerboard.logging_config import get_logger
from pokerboard.models import (
    BUY_IN_TYPES,
    GameSession,
    PlayerSession,
    PlayerStatus,
    SessionStatus,
    TransactionType,
    User,
)
from pokerboard.services import ledger
from pokerboard.services.game_session import (
    GameSessionService,
    can_manage,
)
from pokerboard.utils.errors import ErrorCode, PokerboardError
from pokerboard.utils.formatting import format_amount

logger = get_logger(__name__)


class PlayerError(PokerboardError):
    """Player operation error."""


def _require_finite(amount: float, what: str) -> None:
    if amount is None or not math.isfinite(amount):
        raise PlayerError(ErrorCode.INVALID_AMOUNT, f"{what} must be a finite number")


def _require_positive(amount: float, what: str = "Amount") -> None:
    _require_finite(amount, what)
    if amount <= 0:
        raise PlayerError(ErrorCode.INVALID_AMOUNT, f"{what} must be greater than zero")


def _require_active(player: PlayerSession) -> None:
    if player.status != PlayerStatus.ACTIVE:
        raise PlayerError(
            ErrorCode.PLAYER_NOT_ACTIVE,
            "Player is not active",
            {"player_id": player.id, "status": player.status.value},
        )


class PlayerService:
    """Service for participant operations within a game session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.sessions = GameSessionService(db)

    @staticmethod
    def _seat(game_session: GameSession, player_id: str) -> PlayerSession:
        """Pick a participant out of a loaded session.

        Raises:
            PlayerError: If the player does not belong to the session
        """
        for player in game_session.participants:
            if player.id == player_id:
                return player
        raise PlayerError(
            ErrorCode.PLAYER_NOT_FOUND,
            "Player not found",
            {"session_id": game_session.id, "player_id": player_id},
        )

    async def _managed_player(
        self, session_id: str, player_id: str, user: User
    ) -> tuple[GameSession, PlayerSession]:
        """Player whose session the user hosts or administers."""
        game_session = await self.sessions.get_managed_session(session_id, user)
        return game_session, self._seat(game_session, player_id)

    async def _visible_player(
        self, session_id: str, player_id: str, user: User
    ) -> tuple[GameSession, PlayerSession]:
        """Player the user manages or is themselves."""
        game_session = await self.sessions.get_session(session_id)
        player = self._seat(game_session, player_id)
        if not (can_manage(user, game_session) or player.user_id == user.id):
            raise PlayerError(
                ErrorCode.PLAYER_FORBIDDEN,
                "Only the host, an admin or the player can do this",
                {"player_id": player_id},
            )
        return game_session, player

    async def _commit_move(self, session_id: str, player_id: str) -> PlayerSession:
        """Flush the move and re-read the player with its new ledger rows."""
        await self.db.flush()
        game_session = await self.sessions.get_session(session_id)
        return self._seat(game_session, player_id)

    # -------------------------------------------------------------------------
    # Seats
    # -------------------------------------------------------------------------

    async def add_player(
        self,
        session_id: str,
        user: User,
        user_id: str,
        initial_buy_in: float,
    ) -> PlayerSession:
        """Seat a user at an ongoing session with a BUY_IN.

        Raises:
            PlayerError: If the session is not ONGOING, the buy-in is below the
                table minimum or the user is already seated
        """
        game_session = await self.sessions.get_managed_session(session_id, user)

        if game_session.status != SessionStatus.ONGOING:
            raise PlayerError(ErrorCode.SESSION_NOT_ACTIVE, "Session is not active")

        _require_positive(initial_buy_in, "Initial buy-in")
        if initial_buy_in < game_session.buy_in:
            raise PlayerError(
                ErrorCode.PLAYER_BUY_IN_TOO_LOW,
                f"Initial buy-in must be at least {format_amount(game_session.buy_in)}",
                {"minimum": game_session.buy_in},
            )

        new_user = await self.db.get(User, user_id)
        if not new_user or new_user.is_deleted:
            raise PlayerError(ErrorCode.USER_NOT_FOUND, "User not found", {"user_id": user_id})

        if any(p.user_id == user_id and p.is_active for p in game_session.participants):
            raise PlayerError(
                ErrorCode.PLAYER_ALREADY_ACTIVE,
                "Player is already active in this session",
                {"user_id": user_id},
            )

        player = PlayerSession(
            user_id=user_id,
            session_id=session_id,
            initial_buy_in=initial_buy_in,
            current_stack=initial_buy_in,
            status=PlayerStatus.ACTIVE,
        )
        self.db.add(player)
        await self.db.flush()
        self.db.add(ledger.new_transaction(player, TransactionType.BUY_IN, initial_buy_in))

        logger.info(
            "player_added",
            session_id=session_id,
            player_id=player.id,
            user_id=user_id,
            buy_in=initial_buy_in,
        )
        return await self._commit_move(session_id, player.id)

    async def get_player(
        self, session_id: str, player_id: str, user: User
    ) -> tuple[PlayerSession, GameSession]:
        """Player detail for the host, an admin or the player, with their session."""
        game_session, player = await self._visible_player(session_id, player_id, user)
        return player, game_session

    # -------------------------------------------------------------------------
    # Chip moves
    # -------------------------------------------------------------------------

    async def add_chips(
        self,
        session_id: str,
        player_id: str,
        user: User,
        amount: float,
    ) -> tuple[PlayerSession, str]:
        """Host/admin rebuy for a player."""
        _require_positive(amount)
        _, player = await self._managed_player(session_id, player_id, user)
        _require_active(player)

        player.current_stack += amount
        self.db.add(ledger.new_transaction(player, TransactionType.REBUY, amount))

        message = (
            f"Added {format_amount(amount)} to {player.user.name}'s stack. "
            f"New total: {format_amount(player.current_stack)}"
        )
        logger.info("chips_added", session_id=session_id, player_id=player_id, amount=amount)
        return await self._commit_move(session_id, player.id), message

    async def buy_chips(
        self,
        session_id: str,
        player_id: str,
        user: User,
        amount: float,
        transaction_type: TransactionType = TransactionType.REBUY,
    ) -> tuple[PlayerSession, str]:
        """Buy-in or rebuy requested by the player, the host or an admin."""
        if transaction_type not in BUY_IN_TYPES:
            raise PlayerError(
                ErrorCode.INVALID_TRANSACTION_TYPE,
                "Only BUY_IN or REBUY can add chips",
                {"type": transaction_type.value},
            )
        _require_positive(amount)
        _, player = await self._visible_player(session_id, player_id, user)
        _require_active(player)

        player.current_stack += amount
        self.db.add(ledger.new_transaction(player, transaction_type, amount))

        logger.info(
            "chips_bought",
            session_id=session_id,
            player_id=player_id,
            amount=amount,
            type=transaction_type.value,
        )
        return await self._commit_move(session_id, player.id), "Chips added successfully"

    async def cash_out(
        self,
        session_id: str,
        player_id: str,
        user: User,
        amount: float,
    ) -> tuple[PlayerSession, str]:
        """Take chips off the table; cashing out the whole stack ends the seat.

        Raises:
            PlayerError: If the amount exceeds the current stack
        """
        _require_positive(amount)
        _, player = await self._visible_player(session_id, player_id, user)
        _require_active(player)

        if amount > player.current_stack:
            raise PlayerError(
                ErrorCode.PLAYER_INSUFFICIENT_CHIPS,
                "Not enough chips",
                {"requested": amount, "current_stack": player.current_stack},
            )

        player.current_stack = round(player.current_stack - amount, 2)
        if player.current_stack == 0:
            player.status = PlayerStatus.CASHED_OUT
            player.left_at = datetime.now(timezone.utc)
        self.db.add(ledger.new_transaction(player, TransactionType.CASH_OUT, amount))

        logger.info(
            "player_cashed_out",
            session_id=session_id,
            player_id=player_id,
            amount=amount,
            remaining=player.current_stack,
        )
        return await self._commit_move(session_id, player.id), "Cash out successful"

    # -------------------------------------------------------------------------
    # Leave / rejoin
    # -------------------------------------------------------------------------

    async def leave(
        self,
        session_id: str,
        player_id: str,
        user: User,
        leave_amount: float,
    ) -> tuple[PlayerSession, str]:
        """Mark a player as gone with the chips they leave with.

        The last player at the table must leave with exactly what balances
        the session's buy-ins against everyone else's cash-outs.

        Raises:
            PlayerError: If the last player's amount does not balance the table
        """
        _require_finite(leave_amount, "Leave amount")
        if leave_amount < 0:
            raise PlayerError(ErrorCode.INVALID_AMOUNT, "Leave amount cannot be negative")

        game_session, player = await self._managed_player(session_id, player_id, user)
        _require_active(player)

        participants = game_session.participants
        active = ledger.active_players(participants)
        if len(active) == 1 and active[0].id == player.id:
            required = ledger.required_cash_out(participants)
            if not ledger.is_balanced(required, leave_amount):
                raise PlayerError(
                    ErrorCode.SESSION_UNBALANCED,
                    f"Last player must cash out exactly {format_amount(required)} to balance the session",
                    {"required_cash_out": required, "leave_amount": leave_amount},
                )

        player.status = PlayerStatus.CASHED_OUT
        player.left_at = datetime.now(timezone.utc)
        player.current_stack = leave_amount

        result = leave_amount - player.initial_buy_in
        outcome = "profit" if result >= 0 else "loss"
        message = (
            f"{player.user.name} left the game with {format_amount(leave_amount)} "
            f"({outcome}: {format_amount(abs(result))})"
        )
        logger.info(
            "player_left",
            session_id=session_id,
            player_id=player_id,
            leave_amount=leave_amount,
            profit_loss=result,
        )
        return await self._commit_move(session_id, player.id), message

    async def rejoin(
        self,
        session_id: str,
        player_id: str,
        user: User,
        additional_buy_in: float = 0,
    ) -> tuple[PlayerSession, str]:
        """Bring a cashed-out player back, optionally with a rebuy."""
        _require_finite(additional_buy_in, "Additional buy-in")
        if additional_buy_in < 0:
            raise PlayerError(ErrorCode.INVALID_AMOUNT, "Additional buy-in cannot be negative")

        game_session, player = await self._managed_player(session_id, player_id, user)

        if game_session.status != SessionStatus.ONGOING:
            raise PlayerError(ErrorCode.SESSION_NOT_ACTIVE, "Session is not active")
        if player.status == PlayerStatus.ACTIVE:
            raise PlayerError(
                ErrorCode.PLAYER_ALREADY_ACTIVE,
                "Player is already active",
                {"player_id": player_id},
            )

        player.status = PlayerStatus.ACTIVE
        player.left_at = None
        if additional_buy_in > 0:
            player.current_stack += additional_buy_in
            self.db.add(ledger.new_transaction(player, TransactionType.REBUY, additional_buy_in))

        message = f"{player.user.name} rejoined the game"
        if additional_buy_in > 0:
            message += f" with an additional {format_amount(additional_buy_in)}"

        logger.info(
            "player_rejoined",
            session_id=session_id,
            player_id=player_id,
            additional_buy_in=additional_buy_in,
        )
        return await self._commit_move(session_id, player.id), message
