"""
Database configuration and session management.
Uses SQLAlchemy 2.x; SQLite on device, any SQLAlchemy URL elsewhere.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from tripbuddy.config import settings
from tripbuddy.logging_config import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy Base for ORM models."""


_engine: Engine | None = None
_session_local: sessionmaker | None = None


def get_engine() -> Engine:
    """Get or create the engine lazily."""
    global _engine
    if _engine is None:
        connect_args = {}
        if settings.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,
            echo=settings.database_echo,
            connect_args=connect_args,
        )
    return _engine


def get_session_local() -> sessionmaker:
    """Get or create the session factory lazily."""
    global _session_local
    if _session_local is None:
        _session_local = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_local


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session that commits on success and rolls back on error.

    Yields:
        SQLAlchemy Session
    """
    db = get_session_local()()
    try:
        logger.debug("database_session_created")
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("database_session_error", error=str(e), exc_info=True)
        raise
    finally:
        db.close()
        logger.debug("database_session_closed")


def init_db(engine: Engine | None = None) -> None:
    """
    Initialize database tables.

    The on-device store has no migration history; tables are created
    in place on first start.
    """
    import tripbuddy.models  # noqa: F401  (registers models on Base.metadata)

    logger.info("initializing_database_tables")
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("database_tables_created")
