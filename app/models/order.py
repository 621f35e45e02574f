from __future__ import annotations

import enum

from sqlalchemy import Column, Enum, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.common import TimestampMixin


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"


def format_order_number(order_id: int) -> str:
    return f"ORD-{order_id:04d}"


class Order(Base, TimestampMixin):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, index=True, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Kept nullable so orders survive product deletion as a historical record
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [m.value for m in e], name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
    )

    user = relationship("User", back_populates="orders")
