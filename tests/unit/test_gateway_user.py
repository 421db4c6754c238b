"""Unit tests for UserService and the auth schemas (mocked DB)."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from config.settings import settings
from src.wt_common.enums import UserRole
from src.wt_common.errors import (
    AccountDisabledError,
    CreatorSignupDeniedError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.wt_gateway.auth.jwt_handler import create_access_token, create_refresh_token
from src.wt_gateway.user.db_models import UserModel
from src.wt_gateway.user.schemas import RegisterRequest
from src.wt_gateway.user.service import UserService


def _make_user(is_active: bool = True) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "alice"
    user.email = "alice@example.com"
    user.password_hash = "$2b$12$fakehash"
    user.is_active = is_active
    return user


def _result(value: object) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def service() -> UserService:
    return UserService()


class TestRegisterRequest:
    def test_defaults_to_user_role(self) -> None:
        req = RegisterRequest(username="alice", email="alice@example.com", password="SecureP4ss")
        assert req.role is UserRole.USER

    def test_creator_role(self) -> None:
        req = RegisterRequest(
            username="boss", email="boss@example.com", password="SecureP4ss", role="creator"
        )
        assert req.role is UserRole.CREATOR

    @pytest.mark.parametrize(
        ("username", "email", "password"),
        [
            ("ab", "a@b.com", "SecureP4ss"),
            ("alice!", "a@b.com", "SecureP4ss"),
            ("alice", "not-an-email", "SecureP4ss"),
            ("alice", "a@b.com", "Ab1"),
            ("alice", "a@b.com", "alllower1"),
            ("alice", "a@b.com", "ALLUPPER1"),
            ("alice", "a@b.com", "NoDigitPass"),
            ("alice", "a@b.com", "Aa1" + "\u00e9" * 40),
        ],
    )
    def test_rejects_bad_input(self, username: str, email: str, password: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username=username, email=email, password=password)

    def test_unknown_role(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(
                username="alice", email="a@b.com", password="SecureP4ss", role="admin"
            )


class TestRegister:
    async def test_duplicate_username(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with pytest.raises(UsernameExistsError):
            await service.register("alice", "new@email.com", "Pass1word", mock_db)

    async def test_duplicate_email(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(_make_user())])
        with pytest.raises(EmailExistsError):
            await service.register("newuser", "alice@example.com", "Pass1word", mock_db)

    async def test_seeds_paper_balance(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(None), MagicMock()])
        with patch("src.wt_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.register("bob", "bob@example.com", "Pass1word", mock_db)

        assert user.can_trade is True
        assert user.role == "user"
        mock_db.add.assert_called_once_with(user)
        mock_db.flush.assert_awaited_once()
        seed_params = mock_db.execute.await_args_list[-1].args[1]
        assert seed_params == {"user_id": str(user.id), "starting": 10_000_000}

    async def test_creator_cannot_trade(
        self, service: UserService, mock_db: AsyncMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "CREATOR_SIGNUP_CODE", "let-me-in")
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(None), MagicMock()])
        with patch("src.wt_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.register(
                "boss",
                "boss@example.com",
                "Pass1word",
                mock_db,
                role=UserRole.CREATOR,
                creator_code="let-me-in",
            )
        assert user.can_trade is False
        assert user.role == "creator"

    @pytest.mark.parametrize(
        ("configured", "supplied"),
        [
            ("let-me-in", None),
            ("let-me-in", "guess"),
            (None, "let-me-in"),
            ("", ""),
        ],
    )
    async def test_creator_needs_signup_code(
        self,
        service: UserService,
        mock_db: AsyncMock,
        monkeypatch: pytest.MonkeyPatch,
        configured: str | None,
        supplied: str | None,
    ) -> None:
        monkeypatch.setattr(settings, "CREATOR_SIGNUP_CODE", configured)
        with pytest.raises(CreatorSignupDeniedError):
            await service.register(
                "boss",
                "boss@example.com",
                "Pass1word",
                mock_db,
                role=UserRole.CREATOR,
                creator_code=supplied,
            )
        mock_db.execute.assert_not_awaited()
        mock_db.add.assert_not_called()

    async def test_plain_user_ignores_signup_code(
        self, service: UserService, mock_db: AsyncMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "CREATOR_SIGNUP_CODE", None)
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(None), MagicMock()])
        with patch("src.wt_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.register("bob", "bob@example.com", "Pass1word", mock_db)
        assert user.role == "user"


class TestLogin:
    async def test_unknown_user(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody", "Pass1word", mock_db)

    async def test_wrong_password(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with (
            patch("src.wt_gateway.user.service.verify_password", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await service.login("alice", "WrongPass1", mock_db)

    async def test_disabled(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user(is_active=False)))
        with (
            patch("src.wt_gateway.user.service.verify_password", return_value=True),
            pytest.raises(AccountDisabledError),
        ):
            await service.login("alice", "Pass1word", mock_db)

    async def test_success(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with patch("src.wt_gateway.user.service.verify_password", return_value=True):
            user, access, refresh = await service.login("alice", "Pass1word", mock_db)
        assert user.username == "alice"
        assert access != refresh


class TestRefresh:
    async def test_mints_access_token(self, service: UserService) -> None:
        token = await service.refresh(create_refresh_token("user-1"))
        assert token

    async def test_rejects_access_token(self, service: UserService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(create_access_token("user-1"))


class TestListTraderIds:
    async def test_stringifies_ids(self, service: UserService, mock_db: AsyncMock) -> None:
        ids = [uuid.uuid4(), uuid.uuid4()]
        result = MagicMock()
        result.scalars.return_value.all.return_value = ids
        mock_db.execute = AsyncMock(return_value=result)
        assert await service.list_trader_ids(mock_db) == [str(i) for i in ids]
