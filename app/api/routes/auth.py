from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.errors import AuthenticationAppError
from app.core.security import create_access_token
from app.db.session import get_db
from app.models.audit_log import AuditAction
from app.schemas.auth import LoginRequest, SignupRequest, TokenResponse
from app.schemas.common import MessageResponse
from app.services.audit_service import record_audit
from app.services.user_service import authenticate_user, create_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, request: Request, db: Session = Depends(get_db)) -> MessageResponse:
    """Register a regular user (role ``user``).

    Raises:
        ConflictAppError: 400 when the username is taken.
    """
    user = create_user(db, payload.username, payload.password)
    record_audit(
        db,
        AuditAction.USER_SIGNUP,
        request=request,
        user_id=user.id,
        username=user.username,
        status_code=status.HTTP_201_CREATED,
    )
    return MessageResponse(message="User created successfully")


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    """Exchange username/password for a signed access token.

    Raises:
        AuthenticationAppError: 401 on unknown user or wrong password.
    """
    user = authenticate_user(db, payload.username, payload.password)
    if user is None:
        record_audit(
            db,
            AuditAction.USER_LOGIN_FAILED,
            request=request,
            username=payload.username,
            success=False,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_message="Invalid credentials",
        )
        raise AuthenticationAppError(code="invalid_credentials", message="Invalid credentials")

    token = create_access_token(user_id=user.id, username=user.username, roles=user.roles)
    record_audit(
        db,
        AuditAction.USER_LOGIN,
        request=request,
        user_id=user.id,
        username=user.username,
    )
    return TokenResponse(token=token)
