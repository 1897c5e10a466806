"""Unit tests for user service (mocked DB)."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from src.pm_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
)
from src.pm_gateway.auth.jwt_handler import create_access_token
from src.pm_gateway.user.db_models import UserModel
from src.pm_gateway.user.service import UserService


def _make_user(is_active: bool = True) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4().hex
    user.email = "alice@example.com"
    user.name = "Alice"
    user.password_hash = "$2b$12$fakehash"
    user.balance = 1000.0
    user.is_admin = False
    user.is_active = is_active
    return user


def _result(user: UserModel | None) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    return result


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def service() -> UserService:
    return UserService()


class TestRegister:
    async def test_new_user_gets_initial_balance(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))

        with patch("src.pm_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.register("Alice@Example.com", "Alice", "Pass1word", mock_db)

        assert user.email == "alice@example.com"
        assert user.balance == 1000.0
        assert user.is_admin is False
        assert user.password_hash == "hashed"
        mock_db.add.assert_called_once_with(user)
        mock_db.commit.assert_awaited_once()

    async def test_duplicate_email_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))

        with pytest.raises(EmailExistsError):
            await service.register("alice@example.com", None, "Pass1word", mock_db)
        mock_db.add.assert_not_called()
        mock_db.rollback.assert_awaited_once()

    async def test_unique_violation_on_flush_maps_to_email_exists(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        mock_db.flush.side_effect = IntegrityError("INSERT INTO users", {}, Exception("dup"))

        with (
            patch("src.pm_gateway.user.service.hash_password", return_value="hashed"),
            pytest.raises(EmailExistsError),
        ):
            await service.register("alice@example.com", "Alice", "Pass1word", mock_db)


class TestLogin:
    async def test_unknown_email_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody@example.com", "Pass1word", mock_db)

    async def test_wrong_password_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with (
            patch("src.pm_gateway.user.service.verify_password", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await service.login("alice@example.com", "WrongPass1", mock_db)

    async def test_disabled_account_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user(is_active=False)))
        with (
            patch("src.pm_gateway.user.service.verify_password", return_value=True),
            pytest.raises(AccountDisabledError),
        ):
            await service.login("alice@example.com", "Pass1word", mock_db)

    async def test_success_returns_user_and_token_pair(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with patch("src.pm_gateway.user.service.verify_password", return_value=True):
            user, access, refresh = await service.login("alice@example.com", "Pass1word", mock_db)

        assert user.name == "Alice"
        assert access != refresh


class TestRefresh:
    async def test_invalid_refresh_token_raises_error(self, service: UserService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh("not.a.real.token")

    async def test_access_token_used_as_refresh_raises_error(self, service: UserService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(create_access_token("user-123"))
