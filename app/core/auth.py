"""Bearer token authentication and role checks.

Design principles:
- Dependency Injection: used via FastAPI Depends() for loose coupling
- Stateless: the JWT claims are trusted once the signature verifies; no
  database lookup per request
- Role checks are composable dependencies layered on top of authenticate()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, Callable

from fastapi import Depends, Header, Request

from app.core.errors import AuthenticationAppError, AuthorizationAppError
from app.core.logging import set_user_id
from app.core.security import decode_access_token, extract_bearer_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity extracted from a verified access token."""

    id: int
    username: str
    roles: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


def user_from_claims(claims: dict) -> AuthenticatedUser:
    """Build the request identity from token claims.

    Raises:
        AuthenticationAppError: If mandatory claims are missing or malformed.
    """
    try:
        user_id = int(claims.get("id", claims.get("sub")))
    except (TypeError, ValueError) as exc:
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid or expired token",
        ) from exc
    roles = claims.get("roles") or []
    return AuthenticatedUser(
        id=user_id,
        username=str(claims.get("username", "")),
        roles=tuple(str(r) for r in roles),
    )


async def authenticate(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """FastAPI dependency resolving the caller from ``Authorization: Bearer``.

    Usage:
        @router.get("/protected")
        def protected(user: AuthenticatedUser = Depends(authenticate)): ...

    Args:
        request: Current request; the identity is stored on ``request.state.user``.
        authorization: Raw Authorization header (injected by FastAPI).

    Returns:
        AuthenticatedUser: The verified caller.

    Raises:
        AuthenticationAppError: 401 when the header is missing or the token is invalid.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        logger.warning(
            "auth.missing_token",
            extra={"request_path": request.url.path},
        )
        raise AuthenticationAppError(
            code="authorization_missing",
            message="Authorization header missing",
        )

    claims = decode_access_token(token)
    user = user_from_claims(claims)
    request.state.user = user
    set_user_id(user.id)
    logger.debug("auth.success", extra={"user_id": user.id})
    return user


def require_role(*roles: str) -> Callable[..., AuthenticatedUser]:
    """Build a dependency admitting callers holding at least one of ``roles``.

    Example:
        >>> router.delete("/{id}", dependencies=[Depends(require_role("admin"))])
    """

    async def _require_role(
        user: Annotated[AuthenticatedUser, Depends(authenticate)],
    ) -> AuthenticatedUser:
        if not any(role in user.roles for role in roles):
            logger.warning(
                "auth.forbidden",
                extra={"user_id": user.id, "required_roles": list(roles)},
            )
            raise AuthorizationAppError(
                code="insufficient_role",
                message="Forbidden: insufficient role",
                details={"required_roles": list(roles)},
            )
        return user

    return _require_role


CurrentUser = Annotated[AuthenticatedUser, Depends(authenticate)]
AdminUser = Annotated[AuthenticatedUser, Depends(require_role("admin"))]
