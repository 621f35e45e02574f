"""Password hashing and JWT issuance/verification."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.errors import AuthenticationAppError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(
    *,
    user_id: int,
    username: str,
    roles: list[str],
    expires_minutes: int | None = None,
) -> str:
    """Sign an access token carrying the caller's id, username and roles.

    Args:
        user_id: Database id of the user.
        username: Login name, echoed back to clients.
        roles: Role names used by role checks (e.g., ``["admin"]``).
        expires_minutes: Lifetime override; defaults to JWT_EXPIRES_MINUTES.

    Returns:
        Encoded JWT string.
    """
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.auth.expires_minutes
    )
    to_encode = {
        "sub": str(user_id),
        "id": user_id,
        "username": username,
        "roles": list(roles),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.auth.secret, algorithm=settings.auth.algorithm)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the credential part of a ``Bearer <token>`` header, if any.

    The scheme is matched case-insensitively. Both the rate limiter and
    authentication use this, so they always agree on who is a token holder.
    """
    if not authorization:
        return None
    scheme, _, credential = authorization.strip().partition(" ")
    credential = credential.strip()
    if scheme.lower() != "bearer" or not credential:
        return None
    return credential


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry and return the claims.

    Raises:
        AuthenticationAppError: If the token is malformed, forged or expired.
    """
    try:
        return jwt.decode(token, settings.auth.secret, algorithms=[settings.auth.algorithm])
    except JWTError as exc:
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid or expired token",
        ) from exc
