"""Saved settlement results, one row per player per session."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pokerboard.models.base import Base, Money, UUIDMixin, utcnow

if TYPE_CHECKING:
    from pokerboard.models.game_session import GameSession
    from pokerboard.models.user import User


class SessionSettlement(Base, UUIDMixin):
    """Final profit/loss and cost share of one player."""

    __tablename__ = "session_settlements"

    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("game_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    original_profit_loss: Mapped[float] = mapped_column(Money, nullable=False)
    session_cost_share: Mapped[float] = mapped_column(Money, nullable=False)
    final_amount: Mapped[float] = mapped_column(Money, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    session: Mapped["GameSession"] = relationship(
        "GameSession",
        back_populates="settlements",
        lazy="raise_on_sql",
    )
    player: Mapped["User"] = relationship("User", lazy="raise_on_sql")

    def __repr__(self) -> str:
        return f"<SessionSettlement player={self.player_id[:8]}... final={self.final_amount}>"
