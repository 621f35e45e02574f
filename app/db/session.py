"""Engine and session factory for the relational store."""

from __future__ import annotations

import logging
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.db.base import Base

logger = logging.getLogger(__name__)


def _configure_sqlite(engine: Engine) -> None:
    """Enforce foreign keys and take the write lock at transaction start.

    With pysqlite's deferred BEGIN, two transactions can each hold a read
    lock while waiting to upgrade it, and SQLite fails one of them with
    "database is locked" instead of waiting. BEGIN IMMEDIATE queues writers
    on the busy timeout instead.
    """

    @event.listens_for(engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        # SQLite ignores FOREIGN KEY clauses (and ON DELETE actions) unless asked
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, *, echo: bool = False, **kwargs) -> Engine:
    """Create an engine for ``url``.

    SQLite engines are usable from FastAPI's thread pool and serialize
    writers with BEGIN IMMEDIATE. Foreign keys are enforced so
    ``ON DELETE SET NULL`` detaches orders from deleted products.
    """
    connect_args = kwargs.pop("connect_args", {})
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, echo=echo, connect_args=connect_args, **kwargs)
    if is_sqlite:
        _configure_sqlite(engine)
    return engine


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = build_engine(settings.db.url, echo=settings.db.echo)
SessionLocal = build_session_factory(engine)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    # Import models so they register on Base.metadata
    import app.models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("db.initialized", extra={"dialect": target.dialect.name})


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
