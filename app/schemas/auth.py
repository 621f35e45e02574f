"""Pydantic schemas for signup and login."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=64)]


class SignupRequest(BaseModel):
    username: Username = Field(..., description="Unique login name (3+ characters).")
    password: str = Field(..., min_length=6, description="Plain password (6+ characters).")


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    token: str = Field(..., description="Signed JWT to send as 'Authorization: Bearer <token>'.")
