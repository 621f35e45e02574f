from __future__ import annotations

import enum

from sqlalchemy import JSON, Boolean, Column, Enum, ForeignKey, Index, Integer, String, Text

from app.db.base import Base
from app.models.common import TimestampMixin


class AuditAction(str, enum.Enum):
    USER_SIGNUP = "USER_SIGNUP"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGIN_FAILED = "USER_LOGIN_FAILED"
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_DELETED = "ORDER_DELETED"
    PRODUCT_CREATED = "PRODUCT_CREATED"
    PRODUCT_DELETED = "PRODUCT_DELETED"


class AuditLog(Base, TimestampMixin):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_user_created", "user_id", "created_at"),
        Index("ix_audit_logs_action_created", "action", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # Nullable so unauthenticated actions (failed logins) can be recorded
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    username = Column(String(64), nullable=True)
    action = Column(Enum(AuditAction, name="audit_action"), nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    status_code = Column(Integer, nullable=True)
    success = Column(Boolean, nullable=False, default=True)
    error_message = Column(Text, nullable=True)
