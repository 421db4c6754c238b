"""FastAPI auth dependencies.

    @router.post("/orders")
    async def place(user: Annotated[UserModel, Depends(require_trader)]): ...

get_current_user -> any authenticated, active user (401 otherwise)
require_trader   -> additionally can_trade (403 TradingDisabledError)
require_creator  -> additionally role == creator (403 CreatorRequiredError)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_common.database import get_db_session
from src.wt_common.errors import (
    AccountDisabledError,
    CreatorRequiredError,
    InvalidCredentialsError,
    TradingDisabledError,
)
from src.wt_gateway.auth.jwt_handler import decode_token
from src.wt_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> UserModel:
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION
    if not user.is_active:
        raise AccountDisabledError()
    return user


async def require_trader(
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> UserModel:
    if not current_user.can_trade:
        raise TradingDisabledError()
    return current_user


async def require_creator(
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> UserModel:
    if not current_user.is_creator:
        raise CreatorRequiredError()
    return current_user
