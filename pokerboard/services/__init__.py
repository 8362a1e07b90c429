"""Business logic services."""

from pokerboard.services.auth import AuthError, AuthService
from pokerboard.services.email import EmailError, EmailService, get_email_service
from pokerboard.services.game_session import GameSessionService, SessionError
from pokerboard.services.player import PlayerError, PlayerService
from pokerboard.services.settlement import SettlementError, SettlementService
from pokerboard.services.user import UserError, UserService

__all__ = [
    # Auth
    "AuthError",
    "AuthService",
    # Email
    "EmailError",
    "EmailService",
    "get_email_service",
    # Game sessions
    "GameSessionService",
    "SessionError",
    # Players
    "PlayerError",
    "PlayerService",
    # Settlement
    "SettlementError",
    "SettlementService",
    # Users
    "UserError",
    "UserService",
]
