"""User service: register, login, refresh, plus lookups used by the creator tools."""

import hmac

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wt_common.enums import UserRole
from src.wt_common.errors import (
    AccountDisabledError,
    CreatorSignupDeniedError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.wt_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.wt_gateway.auth.password import hash_password, verify_password
from src.wt_gateway.user.db_models import UserModel

_SEED_BALANCE_SQL = text("""
    INSERT INTO balances (user_id, starting_balance, available_balance)
    VALUES (:user_id, :starting, :starting)
""")


def _creator_code_ok(code: str | None) -> bool:
    expected = settings.CREATOR_SIGNUP_CODE
    if not expected or code is None:
        return False
    return hmac.compare_digest(code.encode("utf-8"), expected.encode("utf-8"))


class UserService:
    """Stateless; one instance per router module."""

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
        role: UserRole = UserRole.USER,
        creator_code: str | None = None,
    ) -> UserModel:
        """Create the user and its paper balance row in one transaction.

        Creators need CREATOR_SIGNUP_CODE and are registered with
        can_trade=False. The caller wraps this in `async with db.begin()`.
        """
        if role is UserRole.CREATOR and not _creator_code_ok(creator_code):
            raise CreatorSignupDeniedError()

        result = await db.execute(select(UserModel).where(UserModel.username == username))
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role.value,
            can_trade=role is UserRole.USER,
            is_active=True,
        )
        db.add(user)
        await db.flush()

        await db.execute(
            _SEED_BALANCE_SQL,
            {"user_id": str(user.id), "starting": settings.STARTING_BALANCE_CENTS},
        )
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Return (user, access_token, refresh_token).

        Unknown user and wrong password raise the same error.
        """
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountDisabledError()

        user_id = str(user.id)
        return user, create_access_token(user_id), create_refresh_token(user_id)

    async def refresh(self, refresh_token: str) -> str:
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))

    async def list_trader_ids(self, db: AsyncSession) -> list[str]:
        """Ids of every active account with the plain `user` role, oldest first."""
        result = await db.execute(
            select(UserModel.id)
            .where(UserModel.role == UserRole.USER.value, UserModel.is_active.is_(True))
            .order_by(UserModel.created_at)
        )
        return [str(user_id) for user_id in result.scalars().all()]
