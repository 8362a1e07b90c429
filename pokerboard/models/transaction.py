"""Chip ledger model.

Every change to a stack that moves money (buy-in, rebuy, cash-out) is
recorded as one Transaction row.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pokerboard.models.base import Base, Money, UUIDMixin, utcnow

if TYPE_CHECKING:
    from pokerboard.models.game_session import GameSession, PlayerSession
    from pokerboard.models.user import User


class TransactionType(str, Enum):
    """Ledger entry types."""

    BUY_IN = "BUY_IN"
    REBUY = "REBUY"
    CASH_OUT = "CASH_OUT"


# Types that put money on the table
BUY_IN_TYPES = frozenset({TransactionType.BUY_IN, TransactionType.REBUY})


class Transaction(Base, UUIDMixin):
    """A single ledger entry against a PlayerSession."""

    __tablename__ = "transactions"

    amount: Mapped[float] = mapped_column(Money, nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType, name="transaction_type"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("game_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("player_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="transactions", lazy="raise_on_sql")
    session: Mapped["GameSession"] = relationship(
        "GameSession",
        back_populates="transactions",
        lazy="raise_on_sql",
    )
    player_session: Mapped["PlayerSession"] = relationship(
        "PlayerSession",
        back_populates="transactions",
        lazy="raise_on_sql",
    )

    def __repr__(self) -> str:
        return f"<Transaction {self.type.value} {self.amount}>"
