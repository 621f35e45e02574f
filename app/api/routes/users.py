from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import require_role
from app.db.session import get_db
from app.schemas.common import DataResponse
from app.schemas.user import UserRead
from app.services.user_service import list_users

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "",
    response_model=DataResponse[list[UserRead]],
    dependencies=[Depends(require_role("admin"))],
)
def get_users(db: Session = Depends(get_db)) -> DataResponse[list[UserRead]]:
    """List every user (admin only). Password hashes are never returned."""
    users = list_users(db)
    return DataResponse(data=[UserRead.model_validate(u) for u in users])
