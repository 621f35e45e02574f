"""Race-safe stock reservation.

Each order holds exactly one unit of one product. Both directions of the
stock adjustment are single conditional UPDATE statements, so the database
serializes concurrent reservations and releases on the same row:

- reserve: ``UPDATE products SET stock = stock - 1 WHERE id = :id AND stock > 0``
- release: ``UPDATE products SET stock = stock + 1 WHERE id = :id``

Never read ``stock`` into Python, branch on it, and write it back: two
requests interleaving between the read and the write would both succeed
and oversell the last unit.

Neither function commits. The caller owns the transaction so the stock
change and the order row land (or roll back) together.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.errors import NotFoundAppError, OutOfStockAppError
from app.models.product import Product

logger = logging.getLogger(__name__)


def reserve_one(db: Session, product_id: int) -> Product:
    """Atomically take one unit of stock from ``product_id``.

    Args:
        db: Session whose transaction the decrement joins.
        product_id: Product to reserve from.

    Returns:
        The product as it is after the decrement.

    Raises:
        NotFoundAppError: No product has this id.
        OutOfStockAppError: The product exists but its stock was 0.
    """
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock > 0)
        .values(stock=Product.stock - 1)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 1:
        product = db.get(Product, product_id, populate_existing=True)
        logger.info(
            "stock.reserved",
            extra={"product_id": product_id, "stock": product.stock},
        )
        return product

    # The UPDATE already made the decision; this lookup only picks the error.
    exists = db.scalar(select(Product.id).where(Product.id == product_id))
    if exists is None:
        logger.info("stock.product_not_found", extra={"product_id": product_id})
        raise NotFoundAppError(
            code="product_not_found",
            message="Product not found",
            details={"product_id": product_id},
        )

    logger.info("stock.out_of_stock", extra={"product_id": product_id})
    raise OutOfStockAppError(
        code="out_of_stock",
        message="Product is out of stock",
        details={"product_id": product_id},
    )


def release_one(db: Session, product_id: int | None) -> bool:
    """Atomically give one unit of stock back to ``product_id``.

    A product that no longer exists has nothing to restock; the release is
    dropped.

    Returns:
        True if a product row was incremented.
    """
    if product_id is None:
        return False

    result = db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + 1)
        .execution_options(synchronize_session=False)
    )
    released = result.rowcount == 1
    logger.info(
        "stock.released" if released else "stock.release_dropped",
        extra={"product_id": product_id},
    )
    return released
