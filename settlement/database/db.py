"""SQLAlchemy engine, session factory and declarative base."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from settlement.core.config import get_config

logger = logging.getLogger(__name__)

_config = get_config()


def engine_options(database_url: str, echo: bool = False) -> dict[str, Any]:
    """Keyword arguments for ``create_engine`` suited to the URL's backend."""
    if database_url.startswith("sqlite"):
        # Sessions are handed across FastAPI's worker threads.
        return {"echo": echo, "connect_args": {"check_same_thread": False}}
    return {
        "echo": echo,
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 5,
        "max_overflow": 10,
    }


DATABASE_URL = _config.DATABASE_URL
engine: Engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL, echo=_config.DEBUG))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_engine() -> Engine:
    return engine


def get_active_database_url() -> str:
    return DATABASE_URL


def get_db() -> Generator[Session, None, None]:
    """One session per request; always closed afterwards."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def verify_database_connection() -> bool:
    """Run ``SELECT 1`` against the configured database."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception(
            "database.connection_failed",
            extra={"event": "database.connection_failed", "database_url_scheme": DATABASE_URL.split("://", 1)[0]},
        )
        return False
    return True
