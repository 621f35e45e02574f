from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.auth import AdminUser, CurrentUser
from app.db.session import get_db
from app.models.audit_log import AuditAction
from app.schemas.common import DataResponse, MessageResponse
from app.schemas.order import OrderCreate, OrderCreated, OrderRead
from app.services import order_service
from app.services.audit_service import record_audit

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("", response_model=DataResponse[list[OrderRead]])
def list_orders(user: CurrentUser, db: Session = Depends(get_db)) -> DataResponse[list[OrderRead]]:
    """List orders, newest first. Admins see all orders, others only their own."""
    rows = order_service.list_orders(db, user)
    data = [
        OrderRead.model_validate(order).model_copy(update={"username": username})
        for order, username in rows
    ]
    return DataResponse(data=data)


@router.post(
    "",
    response_model=DataResponse[OrderCreated],
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    request: Request,
    user: CurrentUser,
    db: Session = Depends(get_db),
) -> DataResponse[OrderCreated]:
    """Reserve one unit of the product and create the order.

    Raises:
        NotFoundAppError: 404 when the product does not exist.
        OutOfStockAppError: 400 when the product has no stock left.
    """
    order = order_service.create_order(db, user, payload.product_id, payload.status)
    data = OrderCreated.model_validate(order)
    record_audit(
        db,
        AuditAction.ORDER_CREATED,
        request=request,
        user=user,
        details={
            "order_id": data.id,
            "order_number": data.order_number,
            "product_id": payload.product_id,
        },
        status_code=status.HTTP_201_CREATED,
    )
    return DataResponse(message="Order created", data=data)


@router.delete("/{order_id}", response_model=MessageResponse)
def delete_order(
    order_id: int,
    request: Request,
    admin: AdminUser,
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Delete an order and release its unit back to the product (admin only)."""
    order = order_service.delete_order(db, order_id)
    record_audit(
        db,
        AuditAction.ORDER_DELETED,
        request=request,
        user=admin,
        details={
            "order_id": order_id,
            "order_number": order.order_number,
            "product_id": order.product_id,
        },
    )
    return MessageResponse(message="Order deleted")
