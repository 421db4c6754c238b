"""Unit tests for token handling, password hashing and auth dependencies."""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from jose import jwt

from src.wt_common.enums import UserRole
from src.wt_common.errors import (
    AccountDisabledError,
    CreatorRequiredError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    TradingDisabledError,
)
from src.wt_gateway.auth.dependencies import (
    get_current_user,
    require_creator,
    require_trader,
)
from src.wt_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.wt_gateway.auth.password import hash_password, verify_password
from src.wt_gateway.user.db_models import UserModel


def _user(role: UserRole = UserRole.USER, is_active: bool = True) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "trader"
    user.role = role.value
    user.can_trade = role is UserRole.USER
    user.is_active = is_active
    return user


class TestTokens:
    def test_claims(self) -> None:
        access = jwt.get_unverified_claims(create_access_token("user-123"))
        refresh = jwt.get_unverified_claims(create_refresh_token("user-123"))
        assert (access["sub"], access["type"]) == ("user-123", "access")
        assert (refresh["sub"], refresh["type"]) == ("user-123", "refresh")
        assert refresh["exp"] > access["exp"]

    def test_decode_round_trip(self) -> None:
        payload = decode_token(create_access_token("user-abc"), expected_type="access")
        assert payload["sub"] == "user-abc"

    def test_token_types_are_not_interchangeable(self) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            decode_token(create_access_token("u"), expected_type="refresh")
        with pytest.raises(InvalidCredentialsError):
            decode_token(create_refresh_token("u"), expected_type="access")

    def test_expired_access_token(self) -> None:
        with patch("src.wt_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
            token = create_access_token("u")
        with pytest.raises(InvalidCredentialsError):
            decode_token(token, expected_type="access")

    def test_wrong_secret_rejected(self) -> None:
        forged = jwt.encode({"sub": "u", "type": "access"}, "other-secret", algorithm="HS256")
        with pytest.raises(InvalidCredentialsError):
            decode_token(forged, expected_type="access")


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("MySecret1")
        assert hashed != "MySecret1"
        assert verify_password("MySecret1", hashed) is True
        assert verify_password("WrongPass9", hashed) is False

    def test_salted(self) -> None:
        assert hash_password("MySecret1") != hash_password("MySecret1")

    def test_unreadable_hash_fails_closed(self) -> None:
        assert verify_password("MySecret1", "not-a-bcrypt-hash") is False

    def test_rounds_from_settings(self) -> None:
        assert hash_password("MySecret1").startswith("$2b$04$")


class TestDependencies:
    @staticmethod
    def _db(user: UserModel | None) -> AsyncMock:
        result = MagicMock()
        result.scalar_one_or_none.return_value = user
        db = AsyncMock()
        db.execute = AsyncMock(return_value=result)
        return db

    async def test_current_user_loaded_from_token(self) -> None:
        user = _user()
        found = await get_current_user(create_access_token(str(user.id)), self._db(user))
        assert found is user

    async def test_unknown_user_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc:
            await get_current_user(create_access_token(str(uuid.uuid4())), self._db(None))
        assert exc.value.status_code == 401

    async def test_bad_token_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc:
            await get_current_user("garbage", self._db(_user()))
        assert exc.value.status_code == 401

    async def test_disabled_user_rejected(self) -> None:
        with pytest.raises(AccountDisabledError):
            await get_current_user(
                create_access_token(str(uuid.uuid4())), self._db(_user(is_active=False))
            )

    async def test_creator_cannot_trade(self) -> None:
        with pytest.raises(TradingDisabledError):
            await require_trader(_user(UserRole.CREATOR))

    async def test_user_can_trade(self) -> None:
        user = _user()
        assert await require_trader(user) is user

    async def test_only_creators_pass_creator_gate(self) -> None:
        creator = _user(UserRole.CREATOR)
        assert await require_creator(creator) is creator
        with pytest.raises(CreatorRequiredError):
            await require_creator(_user())

