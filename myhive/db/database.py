"""Database engine and session configuration."""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from myhive.config import Settings, get_settings


class Database:
    """Store handle: an engine plus its session factory.

    The API creates one at startup and keeps it on ``app.state``; background
    jobs receive it explicitly instead of reaching for a module global.

    Attributes:
        engine: SQLAlchemy engine.
        session_factory: Configured ``sessionmaker``.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=engine,
        )

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "Database":
        """Create a handle for a database URL.

        Args:
            database_url: SQLAlchemy connection URL.
            echo: Log emitted SQL.

        Returns:
            Database: New store handle.
        """
        # SQLite doesn't support pool_size/max_overflow
        engine_kwargs = {"echo": echo}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                {
                    "pool_pre_ping": True,
                    "pool_size": 5,
                    "max_overflow": 10,
                }
            )
        else:
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        return cls(create_engine(database_url, **engine_kwargs))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session that is closed on exit.

        Yields:
            Session: SQLAlchemy session.
        """
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        """Create all tables defined in models if they don't exist."""
        from myhive.db.models import Base

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


def get_database(request: Request) -> Database:
    """Get the store handle created by the application lifespan.

    Args:
        request: FastAPI request object.

    Returns:
        Database: Application store handle.
    """
    return request.app.state.database


def get_db(
    database: Annotated[Database, Depends(get_database)],
) -> Generator[Session, None, None]:
    """Get database session.

    Yields:
        Session: SQLAlchemy session.
    """
    with database.session() as db:
        yield db


def init_db(database: Database, settings: Settings | None = None) -> None:
    """Initialize database tables.

    Only creates tables in debug mode; use Alembic migrations otherwise.

    Args:
        database: Store handle.
        settings: Application settings (defaults to the cached settings).
    """
    settings = settings or get_settings()
    if settings.debug:
        database.create_all()
