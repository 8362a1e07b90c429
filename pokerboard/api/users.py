"""User API endpoints."""

from fastapi import APIRouter, Query, Response, status

from pokerboard.api.deps import AdminUser, CurrentUser, DbSession
from pokerboard.schemas import (
    AdminUserDetailResponse,
    AdminUserListItem,
    ChangePasswordRequest,
    CreateUserRequest,
    ErrorResponse,
    GameSessionSummaryResponse,
    MessageResponse,
    PlayerSessionResponse,
    QuickCreateUserRequest,
    UserBasicResponse,
    UserPlayerSessionResponse,
    UserProfileResponse,
)
from pokerboard.services.user import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(current_user: CurrentUser):
    return UserProfileResponse.model_validate(current_user)


@router.post(
    "/me/password",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Current password is incorrect"},
    },
)
async def change_password(
    request_body: ChangePasswordRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    await UserService(db).change_password(
        current_user,
        current_password=request_body.current_password,
        new_password=request_body.new_password,
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/search", response_model=list[UserBasicResponse])
async def search_users(
    current_user: CurrentUser,
    db: DbSession,
    q: str | None = Query(default=None, max_length=100),
):
    """Find users by name or email, for adding players to a table."""
    users = await UserService(db).search(q)
    return [UserBasicResponse.model_validate(u) for u in users]


@router.post(
    "/quick-create",
    response_model=UserBasicResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def quick_create_user(
    request_body: QuickCreateUserRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Create a player account on the spot, with an optional email."""
    user = await UserService(db).quick_create(request_body.name, request_body.email)
    return UserBasicResponse.model_validate(user)


@router.post(
    "/admin",
    response_model=UserProfileResponse,
    responses={
        403: {"model": ErrorResponse, "description": "An admin already exists"},
    },
)
async def become_first_admin(current_user: CurrentUser, db: DbSession):
    """Make the caller admin. Only works while no admin exists."""
    user = await UserService(db).promote_first_admin(current_user)
    return UserProfileResponse.model_validate(user)


# =============================================================================
# Admin
# =============================================================================


@router.get("", response_model=list[AdminUserListItem])
async def list_users(admin: AdminUser, db: DbSession):
    """All users with their lifetime totals."""
    rows = await UserService(db).list_users_with_stats()
    return [
        AdminUserListItem(
            **UserProfileResponse.model_validate(row["user"]).model_dump(),
            total_games=row["total_games"],
            total_buy_ins=row["total_buy_ins"],
            total_cashouts=row["total_cashouts"],
            net_profit=row["net_profit"],
        )
        for row in rows
    ]


@router.post(
    "",
    response_model=UserProfileResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def create_user(
    request_body: CreateUserRequest,
    admin: AdminUser,
    db: DbSession,
):
    user = await UserService(db).create_user(
        name=request_body.name,
        email=request_body.email,
        password=request_body.password,
        is_admin=request_body.is_admin,
    )
    return UserProfileResponse.model_validate(user)


@router.get(
    "/{user_id}",
    response_model=AdminUserDetailResponse,
    responses={
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def get_user_detail(user_id: str, admin: AdminUser, db: DbSession):
    """A user with every game they played, newest first."""
    user, seats = await UserService(db).get_user_detail(user_id)
    return AdminUserDetailResponse(
        **UserProfileResponse.model_validate(user).model_dump(),
        player_sessions=[
            UserPlayerSessionResponse(
                **PlayerSessionResponse.from_player(p, newest_first=True).model_dump(),
                session=GameSessionSummaryResponse.model_validate(p.session),
            )
            for p in seats
        ],
    )


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"model": ErrorResponse, "description": "User is still in a game"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def delete_user(user_id: str, admin: AdminUser, db: DbSession):
    """Soft delete: the account is hidden and signed out, history stays."""
    await UserService(db).soft_delete(user_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{user_id}/restore",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"model": ErrorResponse, "description": "User is not deleted"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
@router.post(
    "/{user_id}/undelete",
    status_code=status.HTTP_204_NO_CONTENT,
    include_in_schema=False,
)
async def restore_user(user_id: str, admin: AdminUser, db: DbSession):
    await UserService(db).restore(user_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
