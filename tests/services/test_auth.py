"""Tests for AuthService with a mocked database session."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pokerboard.models import User
from pokerboard.services.auth import FORGOT_PASSWORD_MESSAGE, AuthError, AuthService
from pokerboard.services.email import EmailError
from pokerboard.utils.security import hash_password, hash_token, verify_password


def mock_db(*results):
    """Session whose successive execute() calls return the given objects."""
    db = MagicMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.delete = AsyncMock()

    mocked = []
    for value in results:
        result = MagicMock()
        result.scalar_one_or_none.return_value = value
        result.scalars.return_value.all.return_value = value if isinstance(value, list) else []
        mocked.append(result)
    db.execute = AsyncMock(side_effect=mocked)
    return db


def make_user(**overrides) -> User:
    values = {
        "id": "user-1",
        "name": "Ali",
        "email": "ali@example.com",
        "password_hash": hash_password("TestPass123"),
        "is_admin": False,
        "is_deleted": False,
    }
    values.update(overrides)
    return User(**values)


class TestRegister:
    @pytest.mark.asyncio
    async def test_email_exists(self):
        service = AuthService(mock_db(make_user()), email_service=AsyncMock())

        with pytest.raises(AuthError) as exc_info:
            await service.register("Ali", "ALI@example.com", "TestPass123")

        assert exc_info.value.code == "USER_EMAIL_EXISTS"

    @pytest.mark.asyncio
    async def test_welcome_email_failure_is_ignored(self):
        mailer = AsyncMock()
        mailer.send_welcome.side_effect = EmailError()
        service = AuthService(mock_db(None), email_service=mailer)

        user = await service.register("Zeynep", " Zeynep@Example.com ", "TestPass123")

        assert user.email == "zeynep@example.com"
        service.db.add.assert_called_once_with(user)
        mailer.send_welcome.assert_awaited_once()


class TestLogin:
    @pytest.mark.asyncio
    async def test_wrong_password(self):
        service = AuthService(mock_db(make_user()))

        with pytest.raises(AuthError) as exc_info:
            await service.login("ali@example.com", "WrongPass123")

        assert exc_info.value.code == "AUTH_INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_user_without_password(self):
        service = AuthService(mock_db(make_user(password_hash=None)))

        with pytest.raises(AuthError) as exc_info:
            await service.login("ali@example.com", "TestPass123")

        assert exc_info.value.code == "AUTH_INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_deleted_account(self):
        service = AuthService(mock_db(make_user(is_deleted=True)))

        with pytest.raises(AuthError) as exc_info:
            await service.login("ali@example.com", "TestPass123")

        assert exc_info.value.code == "AUTH_ACCOUNT_INACTIVE"

    @pytest.mark.asyncio
    async def test_success_drops_oldest_sessions(self):
        old_sessions = [MagicMock(name=f"session{i}") for i in range(3)]
        service = AuthService(mock_db(make_user(), old_sessions))

        result = await service.login("ali@example.com", "TestPass123")

        assert result["user"].id == "user-1"
        assert set(result["tokens"]) >= {"access_token", "refresh_token"}
        service.db.delete.assert_awaited_once_with(old_sessions[0])


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_unknown_email_gets_generic_answer(self):
        mailer = AsyncMock()
        service = AuthService(mock_db(None), email_service=mailer)

        message = await service.request_password_reset("nobody@example.com")

        assert message == FORGOT_PASSWORD_MESSAGE
        mailer.send_password_reset.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stores_token_hash_and_sends_link(self):
        user = make_user()
        mailer = AsyncMock()
        service = AuthService(mock_db(user), email_service=mailer)

        await service.request_password_reset(user.email)

        to, link = mailer.send_password_reset.await_args.args
        token = link.split("token=")[1]
        assert to == user.email
        assert user.reset_token_hash == hash_token(token)
        assert user.reset_token_expires_at is not None

    @pytest.mark.asyncio
    async def test_email_failure_withdraws_token(self):
        user = make_user()
        mailer = AsyncMock()
        mailer.send_password_reset.side_effect = EmailError()
        service = AuthService(mock_db(user), email_service=mailer)

        with pytest.raises(EmailError):
            await service.request_password_reset(user.email)

        assert user.reset_token_hash is None
        assert user.reset_token_expires_at is None

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        service = AuthService(mock_db(None))

        with pytest.raises(AuthError) as exc_info:
            await service.reset_password("deadbeef", "NewPass123")

        assert exc_info.value.code == "RESET_TOKEN_INVALID"


class TestFixPassword:
    @pytest.mark.asyncio
    async def test_deleted_account_cannot_change_password(self):
        user = make_user(is_deleted=True)
        old_hash = user.password_hash
        service = AuthService(mock_db(user))

        with pytest.raises(AuthError) as exc_info:
            await service.fix_password("ali@example.com", "TestPass123", "NewPass123")

        assert exc_info.value.code == "AUTH_ACCOUNT_INACTIVE"
        assert user.password_hash == old_hash

    @pytest.mark.asyncio
    async def test_changes_password(self):
        user = make_user()
        service = AuthService(mock_db(user))

        await service.fix_password("ali@example.com", "TestPass123", "NewPass123")

        assert verify_password("NewPass123", user.password_hash)
