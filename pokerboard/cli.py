"""Command line administration for Pokerboard.

Usage:
    pokerboard create-user --name "Ali" --email ali@example.com --password s3cretpass --admin
    pokerboard reset-password --email ali@example.com --password n3wpassword
    pokerboard seed
"""

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone

from pokerboard.logging_config import configure_logging, get_logger
from pokerboard.config import get_settings
from pokerboard.models import SessionStatus
from pokerboard.services.auth import AuthService
from pokerboard.services.game_session import GameSessionService
from pokerboard.services.player import PlayerService
from pokerboard.services.settlement import SettlementService
from pokerboard.services.user import UserService
from pokerboard.utils.db import close_db, get_db_session
from pokerboard.utils.errors import PokerboardError
from pokerboard.utils.json_utils import json_dumps
from pokerboard.utils.security import generate_temporary_password, hash_password

logger = get_logger(__name__)

SEED_ADMIN_EMAIL = "admin@pokerboard.local"
SEED_PLAYERS = [
    ("Ayşe", "ayse@pokerboard.local"),
    ("Mehmet", "mehmet@pokerboard.local"),
    ("Zeynep", "zeynep@pokerboard.local"),
]


async def create_user(name: str, email: str, password: str, is_admin: bool) -> dict:
    async with get_db_session() as db:
        user = await UserService(db).create_user(name, email, password, is_admin=is_admin)
        return {"id": user.id, "email": user.email, "isAdmin": user.is_admin}


async def reset_password(email: str, password: str) -> dict:
    async with get_db_session() as db:
        auth = AuthService(db)
        user = await auth.get_user_by_email(email)
        if not user:
            raise PokerboardError("USER_NOT_FOUND", f"No user with email {email}")
        user.password_hash = hash_password(password)
        await auth.logout(user.id)
        return {"id": user.id, "email": user.email}


async def seed(admin_password: str) -> dict:
    """Demo data: an admin, three players and one settled game."""
    async with get_db_session() as db:
        users = UserService(db)
        admin = await users.create_user(
            "Admin", SEED_ADMIN_EMAIL, admin_password, is_admin=True
        )
        players = [
            await users.create_user(name, email, generate_temporary_password())
            for name, email in SEED_PLAYERS
        ]

        sessions = GameSessionService(db)
        game = await sessions.create_session(
            host=admin,
            date=datetime.now(timezone.utc) - timedelta(days=1),
            buy_in=1000,
            players=[(p.id, 1000) for p in players],
            location="Kadıköy",
        )
        seats = {p.user_id: p for p in game.participants}

        moves = PlayerService(db)
        await moves.add_chips(game.id, seats[players[1].id].id, admin, 500)
        await moves.leave(game.id, seats[players[0].id].id, admin, 1800)
        await moves.leave(game.id, seats[players[1].id].id, admin, 200)
        await moves.leave(game.id, seats[players[2].id].id, admin, 1500)

        await sessions.update_status(game.id, admin, SessionStatus.COMPLETED)
        await sessions.update_cost(game.id, admin, session_cost=300, discount=10)
        rows = await SettlementService(db).calculate_and_save(game.id, admin)

        return {
            "adminEmail": SEED_ADMIN_EMAIL,
            "adminPassword": admin_password,
            "players": [p.email for p in players],
            "sessionId": game.id,
            "settlementRows": rows,
        }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pokerboard", description="Pokerboard administration")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-user", help="Create a user account")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.add_argument("--admin", action="store_true", help="Grant admin rights")

    reset = commands.add_parser("reset-password", help="Set a user's password")
    reset.add_argument("--email", required=True)
    reset.add_argument("--password", required=True)

    seed_cmd = commands.add_parser("seed", help="Load demo users and a settled game")
    seed_cmd.add_argument(
        "--admin-password",
        default=None,
        help="Password of the demo admin (random when omitted)",
    )

    return parser


async def _run(args: argparse.Namespace) -> dict:
    try:
        if args.command == "create-user":
            return await create_user(args.name, args.email, args.password, args.admin)
        if args.command == "reset-password":
            return await reset_password(args.email, args.password)
        return await seed(args.admin_password or generate_temporary_password())
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(log_level="WARNING", app_env=settings.app_env)

    args = build_parser().parse_args(argv)
    try:
        result = asyncio.run(_run(args))
    except PokerboardError as e:
        print(f"error: {e.code}: {e.message}", file=sys.stderr)
        return 1

    print(json_dumps(result, pretty=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
