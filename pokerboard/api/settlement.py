"""Settlement API endpoints."""

from fastapi import APIRouter, Query

from pokerboard.api.deps import CurrentUser, DbSession
from pokerboard.schemas import (
    ErrorResponse,
    SaveSettlementRequest,
    SettlementLineResponse,
    SettlementPreviewResponse,
    SettlementRowResponse,
    SettlementSaveResponse,
)
from pokerboard.services.settlement import SettlementResult, SettlementService

router = APIRouter(prefix="/sessions/{session_id}/settlement", tags=["Settlement"])


@router.get("", response_model=list[SettlementRowResponse])
async def list_settlements(session_id: str, current_user: CurrentUser, db: DbSession):
    """Saved settlement rows, newest first."""
    rows = await SettlementService(db).list_settlements(session_id)
    return [SettlementRowResponse.model_validate(row) for row in rows]


@router.get(
    "/preview",
    response_model=SettlementPreviewResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not host or admin"},
    },
)
async def preview_settlement(
    session_id: str,
    current_user: CurrentUser,
    db: DbSession,
    session_cost: float | None = Query(default=None, ge=0, alias="sessionCost"),
    discount: float | None = Query(default=None, ge=0, le=100),
):
    """Calculate the settlement without saving it.

    The session's stored cost and discount apply unless given here.
    """
    summary, settleable = await SettlementService(db).preview(
        session_id, current_user, session_cost=session_cost, discount=discount
    )
    return SettlementPreviewResponse(
        lines=[SettlementLineResponse.model_validate(line) for line in summary.lines],
        session_cost=summary.session_cost,
        discount=summary.discount,
        total_profit=summary.total_profit,
        total_loss=summary.total_loss,
        total_discount=summary.total_discount,
        imbalance=summary.imbalance,
        is_balanced=summary.is_balanced,
        can_settle=settleable,
    )


@router.post(
    "",
    response_model=SettlementSaveResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Empty or invalid results"},
        403: {"model": ErrorResponse, "description": "Not host or admin"},
    },
)
async def save_settlement(
    session_id: str,
    request_body: SaveSettlementRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Replace the saved settlement with the given results."""
    count = await SettlementService(db).save_results(
        session_id,
        current_user,
        [
            SettlementResult(
                user_id=r.user_id,
                profit_loss=r.profit_loss,
                cost_share=r.cost_share,
                final_profit=r.final_profit,
            )
            for r in request_body.settlement_results
        ],
    )
    return SettlementSaveResponse(message="Settlement saved successfully", count=count)


@router.post(
    "/calculate",
    response_model=SettlementSaveResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Session cannot be settled yet"},
        403: {"model": ErrorResponse, "description": "Not host or admin"},
    },
)
async def calculate_settlement(session_id: str, current_user: CurrentUser, db: DbSession):
    """Settle a completed session from its stored cost and discount."""
    count = await SettlementService(db).calculate_and_save(session_id, current_user)
    return SettlementSaveResponse(message="Settlement calculated and saved", count=count)
