"""Product catalog operations.

Stock is set once at creation; afterwards only
``app.services.stock_service`` changes it.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.errors import NotFoundAppError
from app.models.product import Product

logger = logging.getLogger(__name__)


def _not_found(product_id: int) -> NotFoundAppError:
    return NotFoundAppError(
        code="product_not_found",
        message="Product not found",
        details={"product_id": product_id},
    )


def list_products(db: Session) -> list[Product]:
    return list(db.scalars(select(Product).order_by(Product.id)))


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise _not_found(product_id)
    return product


def create_product(db: Session, *, name: str, price: float, stock: int = 0) -> Product:
    product = Product(name=name, price=price, stock=stock)
    db.add(product)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(product)
    logger.info("product.created", extra={"product_id": product.id, "stock": stock})
    return product


def delete_product(db: Session, product_id: int) -> None:
    """Delete a product. Orders referencing it keep their name/price snapshot.

    Raises:
        NotFoundAppError: No product has this id.
    """
    try:
        result = db.execute(delete(Product).where(Product.id == product_id))
        if result.rowcount != 1:
            raise _not_found(product_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("product.deleted", extra={"product_id": product_id})
