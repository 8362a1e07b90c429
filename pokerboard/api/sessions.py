"""Game session API endpoints."""

from fastapi import APIRouter, Query, Response, status

from pokerboard.api.deps import CurrentUser, DbSession
from pokerboard.models import SessionStatus
from pokerboard.schemas import (
    BalanceInfoResponse,
    CreateSessionRequest,
    ErrorResponse,
    GameSessionResponse,
    UpdateCostResponse,
    UpdateSessionCostRequest,
    UpdateSessionStatusRequest,
)
from pokerboard.services.game_session import GameSessionService

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post(
    "",
    response_model=GameSessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid player list"},
        404: {"model": ErrorResponse, "description": "Player user not found"},
    },
)
async def create_session(
    request_body: CreateSessionRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Start a game with its first players, the caller hosting."""
    game_session = await GameSessionService(db).create_session(
        host=current_user,
        date=request_body.date,
        buy_in=request_body.buy_in,
        players=[(p.user_id, p.buy_in) for p in request_body.players],
        location=request_body.location,
        game_type=request_body.game_type,
    )
    return GameSessionResponse.from_session(game_session)


@router.get("", response_model=list[GameSessionResponse])
async def list_sessions(
    current_user: CurrentUser,
    db: DbSession,
    session_status: SessionStatus | None = Query(default=None, alias="status"),
    host_id: str | None = Query(default=None, alias="hostId"),
):
    sessions = await GameSessionService(db).list_sessions(status=session_status, host_id=host_id)
    return [GameSessionResponse.from_session(s) for s in sessions]


@router.get(
    "/{session_id}",
    response_model=GameSessionResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not host or admin"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_session(session_id: str, current_user: CurrentUser, db: DbSession):
    game_session = await GameSessionService(db).get_managed_session(session_id, current_user)
    return GameSessionResponse.from_session(game_session)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ErrorResponse, "description": "Not host or admin"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def delete_session(session_id: str, current_user: CurrentUser, db: DbSession):
    await GameSessionService(db).delete_session(session_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{session_id}/status",
    response_model=GameSessionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Players still active"},
    },
)
async def update_session_status(
    session_id: str,
    request_body: UpdateSessionStatusRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Complete or reopen a session."""
    game_session = await GameSessionService(db).update_status(
        session_id, current_user, request_body.status
    )
    return GameSessionResponse.from_session(game_session)


@router.post("/{session_id}/update-cost", response_model=UpdateCostResponse)
async def update_session_cost(
    session_id: str,
    request_body: UpdateSessionCostRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Set the shared cost of the night and the settlement discount."""
    game_session = await GameSessionService(db).update_cost(
        session_id,
        current_user,
        session_cost=request_body.session_cost,
        discount=request_body.discount,
    )
    return UpdateCostResponse(
        message_key="sessionCostUpdated",
        message_params={"cost": game_session.session_cost, "discount": game_session.discount},
        session_cost=game_session.session_cost,
        discount=game_session.discount,
    )


@router.get(
    "/{session_id}/balance-info",
    response_model=BalanceInfoResponse,
    response_model_exclude_none=True,
)
async def get_balance_info(
    session_id: str,
    current_user: CurrentUser,
    db: DbSession,
    player_id: str = Query(..., alias="playerId"),
):
    """How much the last seated player must cash out to balance the table."""
    info = await GameSessionService(db).balance_info(session_id, current_user, player_id)
    return BalanceInfoResponse(**info)
