"""
Database session management using SQLModel.
Provides session factory and dependency injection for FastAPI routes.
"""

from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings

# Create database engine with appropriate settings
if settings.is_sqlite:
    # SQLite-specific configuration
    engine = create_engine(
        settings.SQLALCHEMY_DATABASE_URI,
        echo=settings.DEBUG,
        connect_args={"check_same_thread": False},  # Allow multi-threading for SQLite
    )
else:
    # PostgreSQL configuration with connection pooling
    # pool_pre_ping ensures connections are alive before using them
    engine = create_engine(
        settings.SQLALCHEMY_DATABASE_URI,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def init_db(bind: Engine = engine) -> None:
    """Create all tables registered on the SQLModel metadata."""
    import app.models  # noqa: F401  (registers every table)

    database = bind.url.database
    if bind.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)

    SQLModel.metadata.create_all(bind)


def get_session() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session for FastAPI routes.
    Commit and rollback are owned by the service layer's unit of work.

    Yields:
        Database session instance
    """
    with Session(engine) as session:
        yield session
