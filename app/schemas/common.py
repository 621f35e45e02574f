"""Response envelopes shared by the API routes."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """``{"data": ...}`` envelope, optionally with a human-readable message."""

    message: str | None = Field(default=None, description="Human-readable outcome.")
    data: T


class MessageResponse(BaseModel):
    message: str
