"""bcrypt password hashing (bcrypt >= 4, no passlib).

bcrypt only looks at the first 72 bytes of a password; RegisterRequest
rejects anything longer so no two passwords silently share a hash.
"""

import logging

import bcrypt

from config.settings import settings

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """False on mismatch, and on a stored hash bcrypt cannot parse."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Unreadable password hash; treating login as failed")
        return False
