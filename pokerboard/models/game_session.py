"""GameSession and PlayerSession models.

A GameSession is one evening of poker with a host and a minimum buy-in.
Each participant gets a PlayerSession carrying their running chip stack.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum as SQLEnum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pokerboard.models.base import Base, Money, TimestampMixin, UUIDMixin, utcnow

if TYPE_CHECKING:
    from pokerboard.models.settlement import SessionSettlement
    from pokerboard.models.transaction import Transaction
    from pokerboard.models.user import User

DEFAULT_GAME_TYPE = "No Limit Hold'em"


class SessionStatus(str, Enum):
    """Game session lifecycle."""

    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"


class PlayerStatus(str, Enum):
    """Participant status within a session."""

    ACTIVE = "ACTIVE"
    CASHED_OUT = "CASHED_OUT"


class GameSession(Base, UUIDMixin, TimestampMixin):
    """A poker game instance."""

    __tablename__ = "game_sessions"

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    game_type: Mapped[str] = mapped_column(
        String(100),
        default=DEFAULT_GAME_TYPE,
        nullable=False,
    )
    status: Mapped[SessionStatus] = mapped_column(
        SQLEnum(SessionStatus, name="session_status"),
        default=SessionStatus.ONGOING,
        nullable=False,
        index=True,
    )

    # Minimum buy-in for the table
    buy_in: Mapped[float] = mapped_column(Money, nullable=False)

    # Venue / food cost shared among winners, and winners' discount in percent
    session_cost: Mapped[float | None] = mapped_column(Money, nullable=True)
    discount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    host_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # Relationships
    host: Mapped["User"] = relationship(
        "User",
        back_populates="hosted_sessions",
        lazy="raise_on_sql",
    )
    participants: Mapped[list["PlayerSession"]] = relationship(
        "PlayerSession",
        back_populates="session",
        lazy="raise_on_sql",
        order_by="PlayerSession.joined_at",
        passive_deletes=True,
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="session",
        lazy="raise_on_sql",
        passive_deletes=True,
    )
    settlements: Mapped[list["SessionSettlement"]] = relationship(
        "SessionSettlement",
        back_populates="session",
        lazy="raise_on_sql",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<GameSession {self.id[:8]}... {self.status.value}>"


class PlayerSession(Base, UUIDMixin):
    """A player's seat and chip stack within one GameSession."""

    __tablename__ = "player_sessions"

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

    initial_buy_in: Mapped[float] = mapped_column(Money, nullable=False)
    current_stack: Mapped[float] = mapped_column(Money, nullable=False)
    status: Mapped[PlayerStatus] = mapped_column(
        SQLEnum(PlayerStatus, name="player_status"),
        default=PlayerStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    left_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="player_sessions",
        lazy="raise_on_sql",
    )
    session: Mapped["GameSession"] = relationship(
        "GameSession",
        back_populates="participants",
        lazy="raise_on_sql",
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="player_session",
        lazy="raise_on_sql",
        order_by="Transaction.created_at",
        passive_deletes=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == PlayerStatus.ACTIVE

    def __repr__(self) -> str:
        return (
            f"<PlayerSession user={self.user_id[:8]}... "
            f"stack={self.current_stack} {self.status.value}>"
        )
