"""Database engine and session management."""

import os
from contextlib import contextmanager
from typing import Iterator

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

load_dotenv()


def get_database_url() -> str:
    """Return DATABASE_URL (or the legacy DB_URL) from the environment."""
    database_url = os.environ.get("DATABASE_URL") or os.environ.get("DB_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is required")
    return normalize_database_url(database_url)


def normalize_database_url(database_url: str) -> str:
    """Rewrite the libpq `postgres://` scheme, which SQLAlchemy does not accept."""
    if database_url.startswith("postgres://"):
        return "postgresql://" + database_url[len("postgres://"):]
    return database_url


def get_engine(database_url: str, statement_timeout_ms: int | None = None) -> Engine:
    """Create a pooled engine; on PostgreSQL, bound every statement by `statement_timeout_ms`."""
    database_url = normalize_database_url(database_url)
    connect_args = {}
    if statement_timeout_ms and database_url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Context manager for a session with automatic commit/rollback."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
