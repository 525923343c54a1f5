"""Password hashing (bcrypt) and bearer token signing (PyJWT)."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from tavern.config import settings
from tavern.core.enums import Role
from tavern.core.errors import AuthenticationError


@dataclass(frozen=True)
class TokenIdentity:
    """The authenticated caller as carried in a bearer token"""

    user_id: str
    role: Role


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def create_access_token(user_id: str, role: Role, expires_minutes: int | None = None) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRES_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": Role(role).value,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenIdentity:
    """Decode and validate a bearer token.

    Raises:
        AuthenticationError: signature/expiry failure or incomplete payload.
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid or expired token")

    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or not role:
        raise AuthenticationError("Invalid token payload")

    try:
        return TokenIdentity(user_id=str(sub), role=Role(role))
    except ValueError:
        raise AuthenticationError("Invalid token payload")
