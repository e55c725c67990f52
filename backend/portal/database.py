"""Engine, session factory and declarative base.

PostgreSQL in production, SQLite for development and tests. The schema is
created from the models on startup; there are no migrations.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .core.config import settings

DATABASE_URL = settings.database_url


def is_sqlite(url: str = DATABASE_URL) -> bool:
    return url.startswith("sqlite")


def _create_engine(url: str) -> Engine:
    if not is_sqlite(url):
        return create_engine(
            url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )

    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})

    # Category memberships and prompt versions rely on ON DELETE CASCADE,
    # which SQLite only honours with foreign keys switched on per connection.
    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = _create_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    """Create missing tables for every model. Existing tables are left as they are."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for code running outside a request (startup seeding, the worker).

    Rolls back if the block raises; committing stays with the services.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    with session_scope() as db:
        yield db
