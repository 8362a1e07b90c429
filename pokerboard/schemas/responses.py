"""API response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pokerboard.models import PlayerSession, PlayerStatus, SessionStatus, TransactionType
from pokerboard.schemas.common import BaseSchema
from pokerboard.services import ledger


# =============================================================================
# Auth / User Responses
# =============================================================================


class TokenResponse(BaseModel):
    """Authentication token response."""

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")
    token_type: str = Field(default="Bearer", alias="tokenType")
    expires_in: int = Field(..., alias="expiresIn", description="Access token expiry in seconds")


class UserBasicResponse(BaseSchema):
    """Basic user information."""

    id: str
    name: str
    email: str


class UserProfileResponse(BaseSchema):
    """Full user profile."""

    id: str
    name: str
    email: str
    is_admin: bool = Field(..., alias="isAdmin")
    is_deleted: bool = Field(..., alias="isDeleted")
    deleted_at: datetime | None = Field(None, alias="deletedAt")
    created_at: datetime = Field(..., alias="createdAt")


class AuthResponse(BaseModel):
    """Authentication response with user info."""

    user: UserProfileResponse
    tokens: TokenResponse


class VerifyResetTokenResponse(BaseModel):
    valid: bool


class AdminUserListItem(UserProfileResponse):
    """User row in the admin list, with lifetime totals."""

    total_games: int = Field(..., alias="totalGames")
    total_buy_ins: float = Field(..., alias="totalBuyIns")
    total_cashouts: float = Field(..., alias="totalCashouts")
    net_profit: float = Field(..., alias="netProfit")


# =============================================================================
# Ledger / Player Responses
# =============================================================================


class TransactionResponse(BaseSchema):
    id: str
    amount: float
    type: TransactionType
    user_id: str = Field(..., alias="userId")
    session_id: str = Field(..., alias="sessionId")
    player_session_id: str = Field(..., alias="playerSessionId")
    created_at: datetime = Field(..., alias="createdAt")


class PlayerSessionResponse(BaseSchema):
    """A participant with their running stack and ledger."""

    id: str
    user_id: str = Field(..., alias="userId")
    session_id: str = Field(..., alias="sessionId")
    initial_buy_in: float = Field(..., alias="initialBuyIn")
    current_stack: float = Field(..., alias="currentStack")
    status: PlayerStatus
    joined_at: datetime = Field(..., alias="joinedAt")
    left_at: datetime | None = Field(None, alias="leftAt")
    user: UserBasicResponse
    transactions: list[TransactionResponse] = Field(default_factory=list)
    total_buy_in: float = Field(0, alias="totalBuyIn")
    cashed_out: float = Field(0, alias="cashedOut")
    profit_loss: float | None = Field(None, alias="profitLoss")

    @classmethod
    def from_player(cls, player: PlayerSession, newest_first: bool = False) -> "PlayerSessionResponse":
        """Build from a PlayerSession with ``user`` and ``transactions`` loaded."""
        response = cls.model_validate(player)
        response.total_buy_in = ledger.total_buy_in(player)
        response.cashed_out = ledger.cashed_out_amount(player)
        if player.status == PlayerStatus.CASHED_OUT:
            response.profit_loss = ledger.profit_loss(player)
        if newest_first:
            response.transactions = sorted(
                response.transactions, key=lambda t: t.created_at, reverse=True
            )
        return response


class PlayerActionResponse(BaseModel):
    """Result of a chip operation on a player."""

    message: str
    player: PlayerSessionResponse


# =============================================================================
# Game Session Responses
# =============================================================================


class GameSessionSummaryResponse(BaseSchema):
    id: str
    date: datetime
    location: str | None = None
    game_type: str = Field(..., alias="gameType")
    status: SessionStatus
    buy_in: float = Field(..., alias="buyIn")
    session_cost: float | None = Field(None, alias="sessionCost")
    discount: float = 0
    host_id: str = Field(..., alias="hostId")
    created_at: datetime = Field(..., alias="createdAt")


class GameSessionResponse(GameSessionSummaryResponse):
    """Session with host and participants."""

    host: UserBasicResponse
    participants: list[PlayerSessionResponse] = Field(default_factory=list)
    total_buy_ins: float = Field(0, alias="totalBuyIns")
    total_cash_out: float = Field(0, alias="totalCashOut")

    @classmethod
    def from_session(cls, game_session) -> "GameSessionResponse":
        """Build from a GameSession with host and participant ledgers loaded."""
        participants = [PlayerSessionResponse.from_player(p) for p in game_session.participants]
        total_in, total_out = ledger.session_totals(game_session.participants)
        summary = GameSessionSummaryResponse.model_validate(game_session)
        return cls(
            **summary.model_dump(),
            host=UserBasicResponse.model_validate(game_session.host),
            participants=participants,
            total_buy_ins=total_in,
            total_cash_out=total_out,
        )


class PlayerDetailResponse(PlayerSessionResponse):
    """A participant together with the session they sit in."""

    session: GameSessionResponse


class UserPlayerSessionResponse(PlayerSessionResponse):
    """A user's seat in one game, for the admin user detail view."""

    session: GameSessionSummaryResponse


class AdminUserDetailResponse(UserProfileResponse):
    player_sessions: list[UserPlayerSessionResponse] = Field(
        default_factory=list, alias="playerSessions"
    )


class BalanceInfoResponse(BaseModel):
    """What the last active player must cash out for the table to balance."""

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    is_last_player: bool = Field(..., alias="isLastPlayer")
    required_cash_out: float | None = Field(None, alias="requiredCashOut")
    total_buy_ins: float | None = Field(None, alias="totalBuyIns")
    total_cash_out: float | None = Field(None, alias="totalCashOut")


class UpdateCostResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    message_key: str = Field(..., alias="messageKey")
    message_params: dict[str, Any] = Field(default_factory=dict, alias="messageParams")
    session_cost: float = Field(..., alias="sessionCost")
    discount: float


# =============================================================================
# Settlement Responses
# =============================================================================


class SettlementRowResponse(BaseSchema):
    """A saved settlement row."""

    id: str
    session_id: str = Field(..., alias="sessionId")
    player_id: str = Field(..., alias="playerId")
    original_profit_loss: float = Field(..., alias="originalProfitLoss")
    session_cost_share: float = Field(..., alias="sessionCostShare")
    final_amount: float = Field(..., alias="finalAmount")
    created_at: datetime = Field(..., alias="createdAt")
    player: UserBasicResponse


class SettlementSaveResponse(BaseModel):
    message: str
    count: int


class SettlementLineResponse(BaseSchema):
    user_id: str = Field(..., alias="userId")
    name: str
    profit_loss: float = Field(..., alias="profitLoss")
    adjusted_profit_loss: float = Field(..., alias="adjustedProfitLoss")
    discount_amount: float = Field(..., alias="discountAmount")
    cost_share: float = Field(..., alias="costShare")
    final_profit: float = Field(..., alias="finalProfit")


class SettlementPreviewResponse(BaseSchema):
    """Calculated, unsaved settlement."""

    lines: list[SettlementLineResponse]
    session_cost: float = Field(..., alias="sessionCost")
    discount: float
    total_profit: float = Field(..., alias="totalProfit")
    total_loss: float = Field(..., alias="totalLoss")
    total_discount: float = Field(..., alias="totalDiscount")
    imbalance: float
    is_balanced: bool = Field(..., alias="isBalanced")
    can_settle: bool = Field(False, alias="canSettle")
