from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.auth import AdminUser, CurrentUser
from app.db.session import get_db
from app.models.audit_log import AuditAction
from app.schemas.common import DataResponse, MessageResponse
from app.schemas.product import ProductCreate, ProductRead, ProductSummary
from app.services import product_service
from app.services.audit_service import record_audit

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=DataResponse[list[ProductRead]])
def list_products(user: CurrentUser, db: Session = Depends(get_db)) -> DataResponse[list[ProductRead]]:
    products = product_service.list_products(db)
    return DataResponse(data=[ProductRead.model_validate(p) for p in products])


@router.post(
    "",
    response_model=DataResponse[ProductRead],
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    request: Request,
    admin: AdminUser,
    db: Session = Depends(get_db),
) -> DataResponse[ProductRead]:
    """Create a product with its initial stock (admin only)."""
    product = product_service.create_product(
        db, name=payload.name, price=payload.price, stock=payload.stock
    )
    data = ProductRead.model_validate(product)
    record_audit(
        db,
        AuditAction.PRODUCT_CREATED,
        request=request,
        user=admin,
        details={"product_id": data.id, "name": data.name, "stock": data.stock},
        status_code=status.HTTP_201_CREATED,
    )
    return DataResponse(message="Product created", data=data)


@router.get("/{product_id}", response_model=DataResponse[ProductSummary])
def get_product(
    product_id: int,
    user: CurrentUser,
    db: Session = Depends(get_db),
) -> DataResponse[ProductSummary]:
    product = product_service.get_product(db, product_id)
    return DataResponse(data=ProductSummary.model_validate(product))


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    request: Request,
    admin: AdminUser,
    db: Session = Depends(get_db),
) -> MessageResponse:
    product_service.delete_product(db, product_id)
    record_audit(
        db,
        AuditAction.PRODUCT_DELETED,
        request=request,
        user=admin,
        details={"product_id": product_id},
    )
    return MessageResponse(message="Product deleted")
