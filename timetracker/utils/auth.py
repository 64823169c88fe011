"""Password hashing and JWT helpers."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from timetracker.config import settings

# bcrypt only looks at the first 72 bytes (and newer releases reject longer input)
BCRYPT_MAX_BYTES = 72
TOKEN_TYPE = "access"


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Example:
        >>> hash_password("mypassword123").startswith("$2b$")
        True
    """
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token for a user.

    Args:
        user_id: User ID stored in the ``sub`` claim
        expires_delta: Optional custom lifetime (defaults to the configured one)

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)

    claims = {
        "sub": user_id,
        "type": TOKEN_TYPE,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> str:
    """
    Verify and decode a JWT access token.

    Returns:
        User ID from the ``sub`` claim

    Raises:
        JWTError: If the token is invalid, expired or not an access token
    """
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

    user_id = payload.get("sub")
    if not user_id:
        raise JWTError("Token payload missing 'sub' claim")
    if payload.get("type") != TOKEN_TYPE:
        raise JWTError("Not an access token")

    return user_id
