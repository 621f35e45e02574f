"""Pydantic schemas for the product catalog."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

ProductName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=255)]


class ProductCreate(BaseModel):
    name: ProductName = Field(..., description="Display name (2+ characters after trimming).")
    price: float = Field(..., ge=0, description="Unit price, non-negative.")
    stock: int = Field(0, ge=0, description="Initial units available for ordering.")


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    stock: int
    created_at: datetime


class ProductSummary(BaseModel):
    """Public view of a single product; stock levels are not exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
