"""
Base SQLAlchemy configuration and utilities for practice models.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from src import config


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def get_engine(database_url: str | None = None):
    """Create SQLAlchemy engine.

    Args:
        database_url: Optional database URL override.

    Returns:
        SQLAlchemy engine instance.
    """
    url = database_url or config.database_url()

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=config.SQL_ECHO,
        )

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=config.SQL_ECHO,
    )


# Default engine and session factory
_engine = None
_SessionLocal = None


def get_session_factory(engine=None):
    """Get or create session factory."""
    global _engine, _SessionLocal

    if engine is not None:
        return sessionmaker(autocommit=False, autoflush=False, bind=engine)

    if _SessionLocal is None:
        _engine = get_engine()
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    return _SessionLocal


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions.

    Yields:
        SQLAlchemy session instance.
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def init_db(engine=None) -> None:
    """Create all tables on the given (or default) engine."""
    if engine is None:
        engine = get_engine()

    Base.metadata.create_all(bind=engine)
