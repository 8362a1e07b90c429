"""Database models."""

from pokerboard.models.base import Base, TimestampMixin, UUIDMixin
from pokerboard.models.game_session import (
    DEFAULT_GAME_TYPE,
    GameSession,
    PlayerSession,
    PlayerStatus,
    SessionStatus,
)
from pokerboard.models.settlement import SessionSettlement
from pokerboard.models.transaction import BUY_IN_TYPES, Transaction, TransactionType
from pokerboard.models.user import LoginSession, User

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # User
    "User",
    "LoginSession",
    # Game
    "DEFAULT_GAME_TYPE",
    "GameSession",
    "PlayerSession",
    "PlayerStatus",
    "SessionStatus",
    # Ledger
    "BUY_IN_TYPES",
    "Transaction",
    "TransactionType",
    # Settlement
    "SessionSettlement",
]
