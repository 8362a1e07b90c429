"""Authentication API endpoints.

- Login sessions backed by refresh tokens, with an httpOnly cookie for browsers
- Password recovery by emailed, single-use token
- Structured logging for authentication events
"""

from fastapi import APIRouter, Query, Request, Response, status

from pokerboard.api.deps import ClientInfo, CurrentUser, DbSession, Mailer, TraceId
from pokerboard.config import get_settings
from pokerboard.schemas import (
    AuthResponse,
    ErrorResponse,
    FixPasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserProfileResponse,
    VerifyResetTokenResponse,
)
from pokerboard.logging_config import get_logger
from pokerboard.services.auth import AuthError, AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = get_logger(__name__)
settings = get_settings()


def _set_session_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=access_token,
        max_age=settings.jwt_access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post(
    "/register",
    response_model=UserProfileResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def register(
    request_body: RegisterRequest,
    db: DbSession,
    mailer: Mailer,
    trace_id: TraceId,
):
    """Register a new user account.

    Sends a welcome email; the account is created even if that fails.
    """
    user = await AuthService(db, mailer).register(
        name=request_body.name,
        email=request_body.email,
        password=request_body.password,
    )
    logger.info("register_success", user_id=user.id, trace_id=trace_id)
    return UserProfileResponse.model_validate(user)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account deleted"},
    },
)
async def login(
    request_body: LoginRequest,
    response: Response,
    db: DbSession,
    client_info: ClientInfo,
    trace_id: TraceId,
):
    """Authenticate and open a login session.

    Returns the token pair and sets the session cookie. A user keeps at
    most three login sessions; the oldest is dropped.
    """
    try:
        result = await AuthService(db).login(
            email=request_body.email,
            password=request_body.password,
            user_agent=client_info["user_agent"],
            ip_address=client_info["ip_address"],
        )
    except AuthError as e:
        logger.warning(
            "login_failed",
            email=request_body.email,
            reason=e.code,
            ip_address=client_info["ip_address"],
            trace_id=trace_id,
        )
        raise

    logger.info(
        "login_success",
        user_id=result["user"].id,
        ip_address=client_info["ip_address"],
        trace_id=trace_id,
    )

    _set_session_cookie(response, result["tokens"]["access_token"])
    return AuthResponse(
        user=UserProfileResponse.model_validate(result["user"]),
        tokens=TokenResponse(**result["tokens"]),
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid refresh token"},
    },
)
async def refresh_token(
    request_body: RefreshTokenRequest,
    response: Response,
    db: DbSession,
    client_info: ClientInfo,
):
    """Rotate the token pair of a login session."""
    tokens = await AuthService(db).refresh_tokens(
        refresh_token=request_body.refresh_token,
        user_agent=client_info["user_agent"],
        ip_address=client_info["ip_address"],
    )
    _set_session_cookie(response, tokens["access_token"])
    return TokenResponse(**tokens)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    trace_id: TraceId,
):
    """End the current login session and clear the cookie."""
    await AuthService(db).logout(
        current_user.id,
        session_id=getattr(request.state, "login_session_id", None),
    )
    logger.info("logout", user_id=current_user.id, trace_id=trace_id)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


# =============================================================================
# Password recovery
# =============================================================================


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={
        500: {"model": ErrorResponse, "description": "Reset email could not be sent"},
    },
)
async def forgot_password(
    request_body: ForgotPasswordRequest,
    db: DbSession,
    mailer: Mailer,
):
    """Email a password reset link.

    The answer is the same whether or not the email is registered.
    """
    message = await AuthService(db, mailer).request_password_reset(request_body.email)
    return MessageResponse(message=message)


@router.get(
    "/verify-reset-token",
    response_model=VerifyResetTokenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired token"},
    },
)
async def verify_reset_token(
    db: DbSession,
    token: str = Query(..., min_length=1),
):
    valid = await AuthService(db).verify_reset_token(token)
    return VerifyResetTokenResponse(valid=valid)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired token"},
    },
)
async def reset_password(
    request_body: ResetPasswordRequest,
    db: DbSession,
    trace_id: TraceId,
):
    """Set a new password with a reset token; every login session ends."""
    await AuthService(db).reset_password(request_body.token, request_body.password)
    logger.info("password_reset", trace_id=trace_id)
    return MessageResponse(message="Password has been reset successfully")


@router.post(
    "/fix-password",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def fix_password(
    request_body: FixPasswordRequest,
    db: DbSession,
):
    """Change a password by email and current password, without a session."""
    await AuthService(db).fix_password(
        email=request_body.email,
        current_password=request_body.current_password,
        new_password=request_body.new_password,
    )
    return MessageResponse(message="Password updated successfully")

