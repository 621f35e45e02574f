from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import require_role
from app.db.session import get_db
from app.models.audit_log import AuditAction
from app.schemas.audit_log import AuditLogPage, AuditLogRead, Pagination
from app.services.audit_service import list_audit_logs

router = APIRouter(prefix="/api/audit-logs", tags=["Audit"])


@router.get(
    "",
    response_model=AuditLogPage,
    dependencies=[Depends(require_role("admin"))],
)
def get_audit_logs(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    action: AuditAction | None = Query(None),
    user_id: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
) -> AuditLogPage:
    """Page through audit logs (admin only), newest first."""
    logs, total = list_audit_logs(db, action=action, user_id=user_id, limit=limit, offset=offset)
    return AuditLogPage(
        data=[AuditLogRead.model_validate(log) for log in logs],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(logs) < total,
        ),
    )
