"""Shared fixtures for rss_indexer tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from rss_indexer.errors import PersistenceError
from rss_indexer.sinks.postgres import PostgresStore


class MemorySink:
    """In-memory Sink with create-or-merge upserts and an ordered call log."""

    def __init__(self, name: str = "memory", calls: list | None = None):
        self.name = name
        self.docs: dict[str, dict[str, dict]] = {}
        self.calls = calls if calls is not None else []
        self.fail_on: set[tuple[str, str, str]] = set()

    def upsert(self, collection, entity_id, fields):
        self.calls.append((self.name, "upsert", collection, entity_id))
        if ("upsert", collection, entity_id) in self.fail_on:
            raise PersistenceError(f"{self.name} upsert failed for {entity_id}")
        self.docs.setdefault(collection, {}).setdefault(entity_id, {}).update(fields)

    def delete(self, collection, entity_id):
        self.calls.append((self.name, "delete", collection, entity_id))
        if ("delete", collection, entity_id) in self.fail_on:
            raise PersistenceError(f"{self.name} delete failed for {entity_id}")
        self.docs.get(collection, {}).pop(entity_id, None)

    def get(self, collection, entity_id):
        return self.docs.get(collection, {}).get(entity_id)

    def ids(self, collection) -> set[str]:
        return set(self.docs.get(collection, {}))


@pytest.fixture
def call_log() -> list:
    return []


@pytest.fixture
def memory_index(call_log) -> MemorySink:
    return MemorySink("index", call_log)


@pytest.fixture
def memory_store(call_log) -> MemorySink:
    return MemorySink("store", call_log)


@pytest.fixture
def sqlite_store() -> PostgresStore:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    store = PostgresStore(engine)
    store.ensure_tables()
    yield store
    engine.dispose()
