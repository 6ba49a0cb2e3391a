"""Relational store sink backed by SQLAlchemy (PostgreSQL in production)."""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from rss_indexer.db.connection import get_session_factory, session_scope
from rss_indexer.db.models import Article, Base, TABLES
from rss_indexer.errors import PersistenceError

logger = logging.getLogger(__name__)

# Columns overwritten when a row already exists; everything else is immutable after creation.
UPDATABLE_FIELDS = ("title", "description")

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PostgresStore:
    """Store sink: INSERT ... ON CONFLICT (id) DO UPDATE of title/description."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = get_session_factory(engine)
        try:
            self._insert = _INSERT_BY_DIALECT[engine.dialect.name]
        except KeyError:
            raise ValueError(f"Unsupported database dialect: {engine.dialect.name}") from None

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def ensure_tables(self) -> None:
        """Create the sites/articles tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def upsert(self, collection: str, entity_id: str, fields: Mapping[str, Any]) -> None:
        model = _model_for(collection)
        stmt = self._insert(model).values(id=entity_id, **fields)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={name: stmt.excluded[name] for name in UPDATABLE_FIELDS if name in fields},
        )
        try:
            with session_scope(self._session_factory) as session:
                session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"DB upsert into {collection} failed for {entity_id}: {e}") from e

    def delete(self, collection: str, entity_id: str) -> None:
        model = _model_for(collection)
        try:
            with session_scope(self._session_factory) as session:
                session.execute(delete(model).where(model.id == entity_id))
        except SQLAlchemyError as e:
            raise PersistenceError(f"DB delete from {collection} failed for {entity_id}: {e}") from e

    def get(self, collection: str, entity_id: str) -> Optional[dict[str, Any]]:
        """Return the row as a dict, or None if it does not exist."""
        model = _model_for(collection)
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(model, entity_id)
                if row is None:
                    return None
                return {column.name: getattr(row, column.name) for column in model.__table__.columns}
        except SQLAlchemyError as e:
            raise PersistenceError(f"DB read from {collection} failed for {entity_id}: {e}") from e

    def iter_article_dates(self) -> list[tuple[str, Optional[datetime]]]:
        """Return (id, pubdate) for every stored article."""
        try:
            with session_scope(self._session_factory) as session:
                rows = session.execute(select(Article.id, Article.pubdate)).all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"DB scan of articles failed: {e}") from e
        return [(row.id, row.pubdate) for row in rows]


def _model_for(collection: str):
    try:
        return TABLES[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None
