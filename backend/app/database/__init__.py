"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": settings.db_pool_size,
    "max_overflow": settings.db_max_overflow,
    # Fail fast when the pool is exhausted rather than queueing requests
    "pool_timeout": 5,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
}


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: str, **overrides: Any) -> Engine:
    """
    Create an engine for the given URL.

    SQLite (local development and tests) gets a thread-shareable connection
    and foreign key enforcement; everything else gets the pooled settings.
    """
    if _is_sqlite(url):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        kwargs.update(overrides)
        sqlite_engine = create_engine(url, **kwargs)

        @event.listens_for(sqlite_engine, "connect")
        def _enable_sqlite_fks(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    kwargs = dict(_DEFAULT_POOL_KWARGS)
    kwargs.update(overrides)
    return create_engine(url, **kwargs)


engine: Engine = build_engine(settings.get_database_url())


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency - one session per request."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
]
