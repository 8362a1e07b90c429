"""API request schemas.

Amount rules (positive, within the stack) are checked by the services so
that they surface as 400 errors with a code, like the other ledger rules.
"""

import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from pokerboard.models import SessionStatus, TransactionType


def _check_password_strength(v: str) -> str:
    if not re.search(r"[A-Za-z]", v):
        raise ValueError("Password must contain at least one letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    return v


def _check_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    return v


# =============================================================================
# Auth Requests
# =============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(
        ...,
        min_length=8,
        max_length=100,
        description="Password (min 8 chars, must include number and letter)",
    )

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_name(v)


class LoginRequest(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class RefreshTokenRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str = Field(..., alias="refreshToken", description="Refresh token")


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Password reset with the emailed token."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)


class ChangePasswordRequest(BaseModel):
    """Password change request for a signed-in user."""

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., min_length=8, max_length=100, alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)


class FixPasswordRequest(ChangePasswordRequest):
    """Password change identified by email instead of a session."""

    email: EmailStr


# =============================================================================
# User Requests
# =============================================================================


class CreateUserRequest(BaseModel):
    """Admin user creation."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    is_admin: bool = Field(default=False, alias="isAdmin")


class QuickCreateUserRequest(BaseModel):
    """Create a player on the fly while setting up a table."""

    name: str = Field(..., max_length=100)
    email: EmailStr | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# =============================================================================
# Game Session Requests
# =============================================================================


class SessionPlayerInput(BaseModel):
    user_id: str = Field(..., alias="userId")
    buy_in: float = Field(..., alias="buyIn", allow_inf_nan=False)


class CreateSessionRequest(BaseModel):
    """New game session with its starting players."""

    date: datetime
    location: str | None = Field(default=None, max_length=200)
    game_type: str | None = Field(default=None, max_length=100, alias="gameType")
    buy_in: float = Field(..., gt=0, alias="buyIn", allow_inf_nan=False)
    players: list[SessionPlayerInput] = Field(default_factory=list)


class UpdateSessionStatusRequest(BaseModel):
    status: SessionStatus


class UpdateSessionCostRequest(BaseModel):
    session_cost: float = Field(..., ge=0, alias="sessionCost", allow_inf_nan=False)
    discount: float | None = Field(default=None, ge=0, le=100, allow_inf_nan=False)


# =============================================================================
# Player Requests
# =============================================================================


class AddPlayerRequest(BaseModel):
    user_id: str = Field(..., alias="userId")
    initial_buy_in: float = Field(..., alias="initialBuyIn", allow_inf_nan=False)


class AmountRequest(BaseModel):
    amount: float = Field(..., allow_inf_nan=False)


class ChipsRequest(BaseModel):
    amount: float = Field(..., allow_inf_nan=False)
    type: TransactionType = TransactionType.REBUY


class LeaveRequest(BaseModel):
    leave_amount: float = Field(..., alias="leaveAmount", allow_inf_nan=False)


class RejoinRequest(BaseModel):
    additional_buy_in: float = Field(default=0, alias="additionalBuyIn", allow_inf_nan=False)


# =============================================================================
# Settlement Requests
# =============================================================================


class SettlementResultInput(BaseModel):
    user_id: str = Field(..., alias="userId")
    profit_loss: float = Field(..., alias="profitLoss", allow_inf_nan=False)
    cost_share: float = Field(..., alias="costShare", allow_inf_nan=False)
    final_profit: float = Field(..., alias="finalProfit", allow_inf_nan=False)


class SaveSettlementRequest(BaseModel):
    settlement_results: list[SettlementResultInput] = Field(..., alias="settlementResults")
