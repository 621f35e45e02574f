"""User registration, credential checks and listing."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictAppError
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(User.username == username))


def create_user(
    db: Session,
    username: str,
    password: str,
    roles: list[str] | None = None,
) -> User:
    """Register a user with a bcrypt-hashed password.

    Raises:
        ConflictAppError: The username is already taken.
    """
    if get_user_by_username(db, username) is not None:
        raise ConflictAppError(code="user_exists", message="User already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        roles=list(roles or ["user"]),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same name
        db.rollback()
        raise ConflictAppError(code="user_exists", message="User already exists") from exc

    db.refresh(user)
    logger.info("user.created", extra={"user_id": user.id, "roles": user.roles})
    return user


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    """Return the user when the password matches, None otherwise."""
    user = get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def list_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).order_by(User.id)))
