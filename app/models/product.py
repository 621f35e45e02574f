from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Float, Integer, String

from app.db.base import Base
from app.models.common import TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        # Never reuse the id of a deleted product
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    # Only ever changed through app.services.stock_service
    stock = Column(Integer, nullable=False, default=0)
