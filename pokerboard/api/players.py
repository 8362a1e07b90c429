"""Player API endpoints: seats and chip moves within a session."""

from fastapi import APIRouter, status

from pokerboard.api.deps import CurrentUser, DbSession
from pokerboard.models import PlayerSession
from pokerboard.schemas import (
    AddPlayerRequest,
    AmountRequest,
    ChipsRequest,
    ErrorResponse,
    GameSessionResponse,
    LeaveRequest,
    PlayerActionResponse,
    PlayerDetailResponse,
    PlayerSessionResponse,
    RejoinRequest,
)
from pokerboard.services.player import PlayerService

router = APIRouter(prefix="/sessions/{session_id}/players", tags=["Players"])

_PLAYER_ERRORS = {
    400: {"model": ErrorResponse, "description": "Ledger rule violated"},
    403: {"model": ErrorResponse, "description": "Not allowed for this player"},
    404: {"model": ErrorResponse, "description": "Session or player not found"},
}


def _action(player: PlayerSession, message: str) -> PlayerActionResponse:
    return PlayerActionResponse(message=message, player=PlayerSessionResponse.from_player(player))


@router.post(
    "",
    response_model=PlayerSessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_PLAYER_ERRORS,
)
async def add_player(
    session_id: str,
    request_body: AddPlayerRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Seat a user at an ongoing game with a buy-in."""
    player = await PlayerService(db).add_player(
        session_id,
        current_user,
        user_id=request_body.user_id,
        initial_buy_in=request_body.initial_buy_in,
    )
    return PlayerSessionResponse.from_player(player)


@router.get("/{player_id}", response_model=PlayerDetailResponse, responses=_PLAYER_ERRORS)
async def get_player(
    session_id: str,
    player_id: str,
    current_user: CurrentUser,
    db: DbSession,
):
    """A player with their session and ledger, newest move first."""
    player, game_session = await PlayerService(db).get_player(session_id, player_id, current_user)
    return PlayerDetailResponse(
        **PlayerSessionResponse.from_player(player, newest_first=True).model_dump(),
        session=GameSessionResponse.from_session(game_session),
    )


@router.post(
    "/{player_id}/add-chips",
    response_model=PlayerActionResponse,
    responses=_PLAYER_ERRORS,
)
async def add_chips(
    session_id: str,
    player_id: str,
    request_body: AmountRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Host rebuy for a player."""
    player, message = await PlayerService(db).add_chips(
        session_id, player_id, current_user, request_body.amount
    )
    return _action(player, message)


@router.post(
    "/{player_id}/chips",
    response_model=PlayerActionResponse,
    responses=_PLAYER_ERRORS,
)
async def buy_chips(
    session_id: str,
    player_id: str,
    request_body: ChipsRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    player, message = await PlayerService(db).buy_chips(
        session_id,
        player_id,
        current_user,
        request_body.amount,
        transaction_type=request_body.type,
    )
    return _action(player, message)


@router.post(
    "/{player_id}/cashout",
    response_model=PlayerActionResponse,
    responses=_PLAYER_ERRORS,
)
async def cash_out(
    session_id: str,
    player_id: str,
    request_body: AmountRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Take chips off the table; the whole stack ends the seat."""
    player, message = await PlayerService(db).cash_out(
        session_id, player_id, current_user, request_body.amount
    )
    return _action(player, message)


@router.post(
    "/{player_id}/leave",
    response_model=PlayerActionResponse,
    responses=_PLAYER_ERRORS,
)
async def leave(
    session_id: str,
    player_id: str,
    request_body: LeaveRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Player leaves with a final chip count.

    The last player seated must leave with the amount that balances the table.
    """
    player, message = await PlayerService(db).leave(
        session_id, player_id, current_user, request_body.leave_amount
    )
    return _action(player, message)


@router.post(
    "/{player_id}/rejoin",
    response_model=PlayerActionResponse,
    responses=_PLAYER_ERRORS,
)
async def rejoin(
    session_id: str,
    player_id: str,
    request_body: RejoinRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    player, message = await PlayerService(db).rejoin(
        session_id, player_id, current_user, request_body.additional_buy_in
    )
    return _action(player, message)
