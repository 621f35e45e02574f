"""Pydantic schemas for the audit log listing."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.models.audit_log import AuditAction


class AuditLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    username: str | None
    action: AuditAction
    details: dict[str, Any]
    ip_address: str | None
    user_agent: str | None
    status_code: int | None
    success: bool
    error_message: str | None
    created_at: datetime


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class AuditLogPage(BaseModel):
    data: list[AuditLogRead]
    pagination: Pagination
