"""bcrypt hashing for user credentials."""

import logging
from typing import Optional

from techtorio.extensions import bcrypt

logger = logging.getLogger(__name__)


def hash_password(plain_password: str) -> str:
    return bcrypt.generate_password_hash(plain_password).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """False for a wrong password and for rows whose stored hash is not bcrypt."""
    if not hashed_password:
        return False
    try:
        return bcrypt.check_password_hash(hashed_password, plain_password)
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False
