from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from villa_booking.core.config import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> tuple[bool, str | None]:
    """Check a password; the second item is a replacement hash when the stored one is outdated."""
    return pwd_context.verify_and_update(plain_password, hashed_password)


def create_access_token(user_id: str, *, role: str | None = None) -> str:
    """Bearer token for a signed-in account.

    The role claim is informational for clients; authorization always
    re-reads the user row.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)

    claims: dict[str, Any] = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.access_token_exp_minutes)).timestamp()),
    }
    if role:
        claims["role"] = role

    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a valid token. Raises JWTError otherwise."""
    settings = get_settings()
    claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    user_id = claims.get("sub")
    if not user_id:
        raise JWTError("Token has no subject")
    return user_id
