"""Password hashing and bearer token handling."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from whitebox.core.config import settings


@dataclass(frozen=True)
class TokenClaims:
    email: str
    role: str | None
    expires_at: datetime


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str | None) -> bool:
    """Check a password; accounts without a hash never verify."""
    if not hashed:
        return False
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def issue_token(email: str, role: str | None = None) -> str:
    """Issue a signed access token for a user e-mail.

    The role claim is informational; authorization always re-reads the user row.
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expire_minutes),
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def read_token(token: str) -> TokenClaims | None:
    """Decode a token. Returns None when it is malformed, forged or expired."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    email = payload.get("sub")
    if not email:
        return None
    return TokenClaims(
        email=email,
        role=payload.get("role"),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
