"""User and LoginSession models."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pokerboard.models.base import Base, TimestampMixin, UUIDMixin, utcnow

if TYPE_CHECKING:
    from pokerboard.models.game_session import GameSession, PlayerSession
    from pokerboard.models.transaction import Transaction


class User(Base, UUIDMixin, TimestampMixin):
    """User account model.

    Deletion is soft: ``is_deleted`` hides the account from search and
    blocks login, while game history stays intact.
    """

    __tablename__ = "users"

    # Profile
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Roles / status
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Password reset (only the SHA-256 of the token is stored)
    reset_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    reset_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    login_sessions: Mapped[list["LoginSession"]] = relationship(
        "LoginSession",
        back_populates="user",
        lazy="raise_on_sql",
        cascade="all, delete-orphan",
    )
    hosted_sessions: Mapped[list["GameSession"]] = relationship(
        "GameSession",
        back_populates="host",
        lazy="raise_on_sql",
    )
    player_sessions: Mapped[list["PlayerSession"]] = relationship(
        "PlayerSession",
        back_populates="user",
        lazy="raise_on_sql",
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="user",
        lazy="raise_on_sql",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class LoginSession(Base, UUIDMixin):
    """Refresh-token backed login, one row per signed-in device."""

    __tablename__ = "login_sessions"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Token info
    refresh_token_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Metadata
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="login_sessions",
        lazy="raise_on_sql",
    )

    def __repr__(self) -> str:
        return f"<LoginSession {self.id[:8]}... user={self.user_id[:8]}...>"
