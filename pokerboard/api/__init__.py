"""API routers."""

from fastapi import APIRouter

from pokerboard.api.auth import router as auth_router
from pokerboard.api.players import router as players_router
from pokerboard.api.sessions import router as sessions_router
from pokerboard.api.settlement import router as settlement_router
from pokerboard.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(sessions_router)
api_router.include_router(players_router)
api_router.include_router(settlement_router)

__all__ = [
    "api_router",
    "auth_router",
    "players_router",
    "sessions_router",
    "settlement_router",
    "users_router",
]
