"""Audit trail for security-relevant actions.

Audit rows are written in their own transaction after the action has been
committed. A failure to write one is logged and never fails the request.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import AuthenticatedUser
from app.core.rate_limit import resolve_client_ip
from app.models.audit_log import AuditAction, AuditLog

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    action: AuditAction,
    *,
    request: Request | None = None,
    user: AuthenticatedUser | None = None,
    user_id: int | None = None,
    username: str | None = None,
    details: dict[str, Any] | None = None,
    success: bool = True,
    status_code: int = 200,
    error_message: str | None = None,
) -> AuditLog | None:
    """Persist one audit event.

    Args:
        db: Session used for the audit transaction.
        action: What happened.
        request: Source of the client IP and User-Agent.
        user: Authenticated caller; fills user_id/username when given.
        user_id: Explicit actor id (e.g., right after signup).
        username: Explicit actor name (e.g., a failed login attempt).
        details: Free-form structured context.
        success: Whether the action succeeded.
        status_code: HTTP status associated with the action.
        error_message: Failure reason, if any.

    Returns:
        The stored AuditLog, or None if it could not be written.
    """
    if user is not None:
        user_id = user_id if user_id is not None else user.id
        username = username or user.username

    entry = AuditLog(
        user_id=user_id,
        username=username,
        action=action,
        details=details or {},
        ip_address=resolve_client_ip(request) if request is not None else None,
        user_agent=request.headers.get("user-agent") if request is not None else None,
        status_code=status_code,
        success=success,
        error_message=error_message,
    )

    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "audit.write_failed",
            extra={"action": action.value, "error_type": type(exc).__name__},
        )
        return None

    logger.info(
        "audit.recorded",
        extra={
            "action": action.value,
            "actor": username or "anonymous",
            "success": success,
        },
    )
    return entry


def list_audit_logs(
    db: Session,
    *,
    action: AuditAction | None = None,
    user_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[AuditLog], int]:
    """Return one page of audit logs (newest first) and the total match count."""
    filters = []
    if action is not None:
        filters.append(AuditLog.action == action)
    if user_id is not None:
        filters.append(AuditLog.user_id == user_id)

    total = db.scalar(select(func.count()).select_from(AuditLog).where(*filters)) or 0
    logs = db.scalars(
        select(AuditLog)
        .where(*filters)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(logs), total
