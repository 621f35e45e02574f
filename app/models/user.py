from __future__ import annotations

from sqlalchemy import JSON, Column, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.common import TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    roles = Column(JSON, nullable=False, default=lambda: ["user"])

    orders = relationship("Order", back_populates="user")

    def has_role(self, *roles: str) -> bool:
        return any(role in (self.roles or []) for role in roles)
