"""Tests for authentication API endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from pokerboard.models import LoginSession, User
from pokerboard.utils.security import hash_token
from tests.api.conftest import TEST_PASSWORD, RecordingEmailService


def make_register_data(**overrides) -> dict:
    data = {"name": "Zeynep", "email": "zeynep@example.com", "password": "Poker2026"}
    data.update(overrides)
    return data


class TestRegister:
    """Tests for POST /api/v1/auth/register"""

    @pytest.mark.asyncio
    async def test_register_success(self, test_client: AsyncClient, mailer: RecordingEmailService):
        response = await test_client.post("/api/v1/auth/register", json=make_register_data())

        assert response.status_code == 201
        result = response.json()
        assert result["name"] == "Zeynep"
        assert result["email"] == "zeynep@example.com"
        assert result["isAdmin"] is False
        assert "passwordHash" not in result

        # Welcome email went out
        assert [to for to, _ in mailer.sent] == ["zeynep@example.com"]
        assert mailer.sent[0][1].subject == "Welcome to Pokerboard!"

    @pytest.mark.asyncio
    async def test_register_lowercases_email(self, test_client: AsyncClient):
        response = await test_client.post(
            "/api/v1/auth/register",
            json=make_register_data(email="Zeynep@Example.COM"),
        )

        assert response.status_code == 201
        assert response.json()["email"] == "zeynep@example.com"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, test_client: AsyncClient, test_user: User):
        response = await test_client.post(
            "/api/v1/auth/register",
            json=make_register_data(email=test_user.email.upper()),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "USER_EMAIL_EXISTS"

    @pytest.mark.asyncio
    async def test_register_succeeds_when_welcome_email_fails(
        self, test_client: AsyncClient, test_app, test_db
    ):
        from pokerboard.services.email import get_email_service

        test_app.dependency_overrides[get_email_service] = lambda: RecordingEmailService(fail=True)

        response = await test_client.post("/api/v1/auth/register", json=make_register_data())

        assert response.status_code == 201
        count = await test_db.scalar(select(func.count(User.id)))
        assert count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("password", ["OnlyLetters", "12345678", "Ab1"])
    async def test_register_weak_password(self, test_client: AsyncClient, password: str):
        response = await test_client.post(
            "/api/v1/auth/register",
            json=make_register_data(password=password),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, test_client: AsyncClient):
        response = await test_client.post(
            "/api/v1/auth/register",
            json=make_register_data(email="not-an-email"),
        )

        assert response.status_code == 422


class TestLogin:
    """Tests for POST /api/v1/auth/login"""

    @pytest.mark.asyncio
    async def test_login_success_sets_cookie(self, test_client: AsyncClient, test_user: User):
        response = await test_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        result = response.json()
        assert result["user"]["id"] == test_user.id
        assert result["tokens"]["tokenType"] == "Bearer"
        assert "pokerboard_session" in response.cookies

        # The cookie alone authenticates
        me = await test_client.get("/api/v1/users/me")
        assert me.status_code == 200
        assert me.json()["id"] == test_user.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client: AsyncClient, test_user: User):
        response = await test_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "WrongPass123"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, test_client: AsyncClient):
        response = await test_client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_login_deleted_user(self, test_client: AsyncClient, test_db, test_user: User):
        test_user.is_deleted = True
        test_user.deleted_at = datetime.now(timezone.utc)
        test_db.add(test_user)
        await test_db.commit()

        response = await test_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTH_ACCOUNT_INACTIVE"

    @pytest.mark.asyncio
    async def test_login_keeps_at_most_three_sessions(
        self, test_client: AsyncClient, test_db, test_user: User
    ):
        first_token = None
        for i in range(4):
            response = await test_client.post(
                "/api/v1/auth/login",
                json={"email": test_user.email, "password": TEST_PASSWORD},
            )
            assert response.status_code == 200
            if i == 0:
                first_token = response.json()["tokens"]["accessToken"]

        count = await test_db.scalar(
            select(func.count(LoginSession.id)).where(LoginSession.user_id == test_user.id)
        )
        assert count == 3

        # The evicted session no longer authenticates
        test_client.cookies.clear()
        response = await test_client.get(
            "/api/v1/users/me",
            headers={"Authorization": f"Bearer {first_token}"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_SESSION_EXPIRED"


class TestRefreshAndLogout:
    """Tests for POST /api/v1/auth/refresh and /logout"""

    @pytest.mark.asyncio
    async def test_refresh_rotates_refresh_token(self, test_client: AsyncClient, test_user: User):
        login = await test_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )
        tokens = login.json()["tokens"]

        response = await test_client.post(
            "/api/v1/auth/refresh",
            json={"refreshToken": tokens["refreshToken"]},
        )

        assert response.status_code == 200
        assert response.json()["refreshToken"] != tokens["refreshToken"]

        # The old refresh token is spent
        again = await test_client.post(
            "/api/v1/auth/refresh",
            json={"refreshToken": tokens["refreshToken"]},
        )
        assert again.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_with_garbage_token(self, test_client: AsyncClient):
        response = await test_client.post(
            "/api/v1/auth/refresh",
            json={"refreshToken": "not-a-token"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, test_client: AsyncClient, test_user: User):
        login = await test_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )
        headers = {"Authorization": f"Bearer {login.json()['tokens']['accessToken']}"}

        response = await test_client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 204

        test_client.cookies.clear()
        me = await test_client.get("/api/v1/users/me", headers=headers)
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_requests_without_token_are_rejected(self, test_client: AsyncClient):
        response = await test_client.get("/api/v1/users/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_REQUIRED"


class TestPasswordRecovery:
    """Tests for forgot/verify/reset/fix password"""

    @staticmethod
    def _token_from(mailer: RecordingEmailService) -> str:
        _, content = mailer.sent[-1]
        return content.text.split("token=")[1].split()[0]

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email_is_generic(
        self, test_client: AsyncClient, mailer: RecordingEmailService
    ):
        response = await test_client.post(
            "/api/v1/auth/forgot-password",
            json={"email": "nobody@example.com"},
        )

        assert response.status_code == 200
        assert "If an account exists" in response.json()["message"]
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_reset_flow(
        self,
        test_client: AsyncClient,
        test_db,
        test_user: User,
        mailer: RecordingEmailService,
    ):
        response = await test_client.post(
            "/api/v1/auth/forgot-password",
            json={"email": test_user.email},
        )
        assert response.status_code == 200

        to, content = mailer.sent[-1]
        assert to == test_user.email
        assert content.subject == "Reset Your Password"
        assert "http://testserver/auth/reset-password?token=" in content.text
        assert "1 hour" in content.text
        token = self._token_from(mailer)
        assert len(token) == 64

        # Only the hash is stored
        await test_db.refresh(test_user)
        assert test_user.reset_token_hash == hash_token(token)

        verify = await test_client.get(
            "/api/v1/auth/verify-reset-token", params={"token": token}
        )
        assert verify.status_code == 200
        assert verify.json() == {"valid": True}

        reset = await test_client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "BrandNew2026"},
        )
        assert reset.status_code == 200

        # Single use
        again = await test_client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "Another2026"},
        )
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "RESET_TOKEN_INVALID"

        login = await test_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "BrandNew2026"},
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(
        self,
        test_client: AsyncClient,
        test_db,
        test_user: User,
        mailer: RecordingEmailService,
    ):
        await test_client.post("/api/v1/auth/forgot-password", json={"email": test_user.email})
        token = self._token_from(mailer)

        await test_db.refresh(test_user)
        test_user.reset_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        await test_db.commit()

        verify = await test_client.get(
            "/api/v1/auth/verify-reset-token", params={"token": token}
        )
        assert verify.status_code == 400
        assert verify.json()["error"]["code"] == "RESET_TOKEN_INVALID"

    @pytest.mark.asyncio
    async def test_email_failure_reverts_token(
        self, test_client: AsyncClient, test_app, test_db, test_user: User
    ):
        from pokerboard.services.email import get_email_service

        test_app.dependency_overrides[get_email_service] = lambda: RecordingEmailService(fail=True)

        response = await test_client.post(
            "/api/v1/auth/forgot-password",
            json={"email": test_user.email},
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "EMAIL_SEND_FAILED"

        await test_db.refresh(test_user)
        assert test_user.reset_token_hash is None
        assert test_user.reset_token_expires_at is None

    @pytest.mark.asyncio
    async def test_fix_password(self, test_client: AsyncClient, test_user: User):
        wrong = await test_client.post(
            "/api/v1/auth/fix-password",
            json={
                "email": test_user.email,
                "currentPassword": "WrongPass123",
                "newPassword": "Changed2026",
            },
        )
        assert wrong.status_code == 401

        response = await test_client.post(
            "/api/v1/auth/fix-password",
            json={
                "email": test_user.email,
                "currentPassword": TEST_PASSWORD,
                "newPassword": "Changed2026",
            },
        )
        assert response.status_code == 200

        login = await test_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "Changed2026"},
        )
        assert login.status_code == 200
