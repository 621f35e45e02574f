"""Pydantic schemas for orders."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.models.order import OrderStatus


class OrderCreate(BaseModel):
    product_id: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("product_id", "productId"),
        description="Product to reserve one unit of. ``productId`` is accepted too.",
    )
    status: OrderStatus | None = Field(
        default=None,
        description="Initial status; defaults to 'pending'.",
    )


class OrderCreated(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    product_name: str
    price: float
    status: OrderStatus


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str | None
    user_id: int
    username: str | None = None
    product_id: int | None
    product_name: str
    price: float
    status: OrderStatus
    created_at: datetime
