"""JWT token creation and verification (HS256, shared JWT_SECRET).

Access tokens are short-lived; refresh tokens only mint new access tokens.
Tokens carry a "type" claim that decode_token checks strictly so a refresh
token can never be replayed as an access token.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.wt_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def _encode(user_id: str, token_type: str, ttl: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str) -> str:
    return _encode(user_id, "access", _ACCESS_EXPIRE)


def create_refresh_token(user_id: str) -> str:
    return _encode(user_id, "refresh", _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT.

    Raises:
        InvalidCredentialsError: bad/expired token when an access token was expected.
        InvalidRefreshTokenError: bad/expired token when a refresh token was expected.
    """
    error: type[Exception] = (
        InvalidCredentialsError if expected_type == "access" else InvalidRefreshTokenError
    )
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],
        )
    except JWTError:
        raise error() from None

    if payload.get("type") != expected_type:
        raise error()
    return payload
