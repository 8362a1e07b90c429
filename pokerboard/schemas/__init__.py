"""Pydantic schemas for API requests and responses."""

from pokerboard.schemas.common import BaseSchema, ErrorDetail, ErrorResponse, MessageResponse
from pokerboard.schemas.requests import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
    FixPasswordRequest,
    CreateUserRequest,
    QuickCreateUserRequest,
    SessionPlayerInput,
    CreateSessionRequest,
    UpdateSessionStatusRequest,
    UpdateSessionCostRequest,
    AddPlayerRequest,
    AmountRequest,
    ChipsRequest,
    LeaveRequest,
    RejoinRequest,
    SettlementResultInput,
    SaveSettlementRequest,
)
from pokerboard.schemas.responses import (
    TokenResponse,
    UserBasicResponse,
    UserProfileResponse,
    AuthResponse,
    VerifyResetTokenResponse,
    AdminUserListItem,
    TransactionResponse,
    PlayerSessionResponse,
    PlayerActionResponse,
    GameSessionSummaryResponse,
    GameSessionResponse,
    PlayerDetailResponse,
    UserPlayerSessionResponse,
    AdminUserDetailResponse,
    BalanceInfoResponse,
    UpdateCostResponse,
    SettlementRowResponse,
    SettlementSaveResponse,
    SettlementLineResponse,
    SettlementPreviewResponse,
)

__all__ = [
    # Common
    "BaseSchema",
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    # Requests
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
    "FixPasswordRequest",
    "CreateUserRequest",
    "QuickCreateUserRequest",
    "SessionPlayerInput",
    "CreateSessionRequest",
    "UpdateSessionStatusRequest",
    "UpdateSessionCostRequest",
    "AddPlayerRequest",
    "AmountRequest",
    "ChipsRequest",
    "LeaveRequest",
    "RejoinRequest",
    "SettlementResultInput",
    "SaveSettlementRequest",
    # Responses
    "TokenResponse",
    "UserBasicResponse",
    "UserProfileResponse",
    "AuthResponse",
    "VerifyResetTokenResponse",
    "AdminUserListItem",
    "TransactionResponse",
    "PlayerSessionResponse",
    "PlayerActionResponse",
    "GameSessionSummaryResponse",
    "GameSessionResponse",
    "PlayerDetailResponse",
    "UserPlayerSessionResponse",
    "AdminUserDetailResponse",
    "BalanceInfoResponse",
    "UpdateCostResponse",
    "SettlementRowResponse",
    "SettlementSaveResponse",
    "SettlementLineResponse",
    "SettlementPreviewResponse",
]
