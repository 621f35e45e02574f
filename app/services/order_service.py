"""Order lifecycle: creation reserves stock, deletion releases it."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.auth import AuthenticatedUser
from app.core.errors import NotFoundAppError
from app.models.order import Order, OrderStatus, format_order_number
from app.models.user import User
from app.services.stock_service import release_one, reserve_one

logger = logging.getLogger(__name__)


def create_order(
    db: Session,
    user: AuthenticatedUser,
    product_id: int,
    status: OrderStatus | None = None,
) -> Order:
    """Reserve one unit of ``product_id`` and record the order.

    The reservation and the order insert share one transaction; if the insert
    fails the decrement is rolled back with it.

    Raises:
        NotFoundAppError: Unknown product.
        OutOfStockAppError: Product has no stock left.
    """
    try:
        product = reserve_one(db, product_id)
        order = Order(
            user_id=user.id,
            product_id=product.id,
            product_name=product.name,
            price=product.price,
            status=status or OrderStatus.PENDING,
        )
        db.add(order)
        db.flush()
        order.order_number = format_order_number(order.id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(
        "order.created",
        extra={
            "order_id": order.id,
            "order_number": order.order_number,
            "product_id": product_id,
            "user_id": user.id,
        },
    )
    return order


def delete_order(db: Session, order_id: int) -> Order:
    """Delete an order and put its unit back in stock.

    The row is removed with a conditional DELETE before restocking, so two
    concurrent deletions of the same order release the unit only once.

    Returns:
        The deleted order (detached).

    Raises:
        NotFoundAppError: The order does not exist (or was deleted concurrently).
    """
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundAppError(
            code="order_not_found",
            message="Order not found",
            details={"order_id": order_id},
        )

    # Detach the snapshot so commit does not expire it
    db.expunge(order)

    try:
        result = db.execute(
            delete(Order)
            .where(Order.id == order_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundAppError(
                code="order_not_found",
                message="Order not found",
                details={"order_id": order_id},
            )
        release_one(db, order.product_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "order.deleted",
        extra={"order_id": order_id, "product_id": order.product_id},
    )
    return order


def list_orders(db: Session, user: AuthenticatedUser) -> list[tuple[Order, str | None]]:
    """Return ``(order, username)`` pairs, newest first.

    Admins see every order; other callers only their own.
    """
    stmt = (
        select(Order, User.username)
        .outerjoin(User, User.id == Order.user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    if not user.is_admin:
        stmt = stmt.where(Order.user_id == user.id)
    return [(order, username) for order, username in db.execute(stmt).all()]
