"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any app import so Settings picks
them up instead of a developer's .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("DB_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "10000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.rate_limit import reset_rate_limiter
from app.core.security import create_access_token
from app.db.session import build_engine, build_session_factory, get_db, init_db
from app.main import app
from app.models import Product, User


@pytest.fixture
def db_engine(tmp_path) -> Generator[Engine, None, None]:
    """File-backed SQLite engine so every session gets its own connection."""
    engine = build_engine(f"sqlite:///{tmp_path / 'shop.db'}", connect_args={"timeout": 30})
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(db_engine)


@pytest.fixture
def client(session_factory: sessionmaker[Session]) -> Generator[TestClient, None, None]:
    """Test client wired to the per-test database with a fresh rate limiter."""

    def _get_test_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    reset_rate_limiter()
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_rate_limiter()


@pytest.fixture
def make_user(session_factory: sessionmaker[Session]) -> Callable[..., User]:
    """Insert a user directly (no bcrypt round-trip) and return it detached."""

    def _make_user(username: str, roles: list[str] | None = None) -> User:
        with session_factory() as db:
            user = User(username=username, password_hash="not-used", roles=roles or ["user"])
            db.add(user)
            db.commit()
            db.refresh(user)
            db.expunge(user)
            return user

    return _make_user


@pytest.fixture
def make_product(session_factory: sessionmaker[Session]) -> Callable[..., Product]:
    def _make_product(name: str = "Widget", price: float = 9.99, stock: int = 1) -> Product:
        with session_factory() as db:
            product = Product(name=name, price=price, stock=stock)
            db.add(product)
            db.commit()
            db.refresh(product)
            db.expunge(product)
            return product

    return _make_product


@pytest.fixture
def stock_of(session_factory: sessionmaker[Session]) -> Callable[[int], int | None]:
    def _stock_of(product_id: int) -> int | None:
        with session_factory() as db:
            product = db.get(Product, product_id)
            return product.stock if product is not None else None

    return _stock_of


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user_id=user.id, username=user.username, roles=user.roles)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(make_user) -> dict[str, str]:
    return auth_headers(make_user("alice"))


@pytest.fixture
def admin_headers(make_user) -> dict[str, str]:
    return auth_headers(make_user("root", roles=["admin"]))


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers
