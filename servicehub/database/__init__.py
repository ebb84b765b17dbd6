"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from servicehub.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 5,
    # Recycle before typical managed-Postgres idle timeouts
    "pool_recycle": 300,
    "pool_pre_ping": True,
}


def _is_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite")


def _is_memory_sqlite(db_url: str) -> bool:
    return _is_sqlite(db_url) and (":memory:" in db_url or db_url.rstrip("/") in {"sqlite:", "sqlite+pysqlite:"})


def build_engine(db_url: str, echo: bool = False) -> Engine:
    """Create an engine with pool settings appropriate for the dialect."""
    if _is_memory_sqlite(db_url):
        # One shared connection so every session sees the same in-memory database
        return create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if _is_sqlite(db_url):
        return create_engine(db_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(db_url, echo=echo, poolclass=QueuePool, **_DEFAULT_POOL_KWARGS)


engine: Engine = build_engine(settings.database_url, echo=settings.database_echo)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for short-lived DB operations."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = ["Base", "SessionLocal", "build_engine", "engine", "get_db", "get_db_session"]
