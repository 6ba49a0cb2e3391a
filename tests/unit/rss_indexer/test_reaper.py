"""Tests for rss_indexer.reap.reaper module."""

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from rss_indexer.errors import PersistenceError
from rss_indexer.reap.reaper import is_expired, reap
from rss_indexer.sinks.base import ARTICLES, SITES

NOW = datetime(2024, 1, 10, 12, tzinfo=timezone.utc)
RETENTION = timedelta(days=3)
EPSILON = timedelta(seconds=1)


def _seed(store, index, article_id: str, pubdate) -> None:
    row = {
        "title": article_id,
        "link": f"https://example.com/{article_id}",
        "description": "D",
        "pubdate": pubdate,
        "site_id": "site-1",
    }
    store.upsert(ARTICLES, article_id, row)
    index.upsert(ARTICLES, article_id, {"title": article_id, "description": "D"})


@pytest.fixture
def seeded_store(sqlite_store, memory_index):
    sqlite_store.upsert(SITES, "site-1", {
        "url": "https://example.com/rss",
        "title": "Example",
        "link": "https://example.com/",
        "description": "",
    })
    return sqlite_store


class TestIsExpired:
    def test_just_inside_window_is_kept(self) -> None:
        assert not is_expired(NOW - RETENTION + EPSILON, NOW, RETENTION)

    def test_exactly_at_window_is_kept(self) -> None:
        assert not is_expired(NOW - RETENTION, NOW, RETENTION)

    def test_just_outside_window_is_expired(self) -> None:
        assert is_expired(NOW - RETENTION - EPSILON, NOW, RETENTION)

    def test_missing_pubdate_is_expired(self) -> None:
        assert is_expired(None, NOW, RETENTION)

    def test_naive_pubdate_treated_as_utc(self) -> None:
        naive = (NOW - RETENTION - EPSILON).replace(tzinfo=None)
        assert is_expired(naive, NOW, RETENTION)


class TestReap:
    def test_deletes_only_expired_articles_from_both_sinks(self, seeded_store, memory_index) -> None:
        _seed(seeded_store, memory_index, "fresh", NOW - RETENTION + EPSILON)
        _seed(seeded_store, memory_index, "stale", NOW - RETENTION - EPSILON)

        summary = reap(seeded_store, memory_index, RETENTION, now=NOW)

        assert summary.scanned == 2
        assert summary.deleted == 1
        assert summary.failed == 0
        assert seeded_store.get(ARTICLES, "stale") is None
        assert seeded_store.get(ARTICLES, "fresh") is not None
        assert memory_index.ids(ARTICLES) == {"fresh"}

    def test_articles_without_pubdate_are_deleted(self, seeded_store, memory_index) -> None:
        _seed(seeded_store, memory_index, "undated", None)

        summary = reap(seeded_store, memory_index, RETENTION, now=NOW)

        assert summary.deleted == 1
        assert memory_index.ids(ARTICLES) == set()

    def test_sites_are_never_deleted(self, seeded_store, memory_index) -> None:
        _seed(seeded_store, memory_index, "stale", NOW - timedelta(days=30))

        reap(seeded_store, memory_index, RETENTION, now=NOW)

        assert seeded_store.get(SITES, "site-1") is not None
        assert all(call[2] == ARTICLES for call in memory_index.calls if call[1] == "delete")

    def test_store_delete_precedes_index_delete(self, seeded_store, memory_index) -> None:
        _seed(seeded_store, memory_index, "stale", NOW - timedelta(days=30))
        memory_index.calls.clear()

        reap(seeded_store, memory_index, RETENTION, now=NOW)

        assert seeded_store.get(ARTICLES, "stale") is None
        assert memory_index.calls == [("index", "delete", ARTICLES, "stale")]

    def test_index_failure_is_isolated_to_the_row(self, seeded_store, memory_index) -> None:
        _seed(seeded_store, memory_index, "stale-1", NOW - timedelta(days=30))
        _seed(seeded_store, memory_index, "stale-2", NOW - timedelta(days=30))
        memory_index.fail_on.add(("delete", ARTICLES, "stale-1"))

        summary = reap(seeded_store, memory_index, RETENTION, now=NOW)

        assert summary.scanned == 2
        assert summary.deleted == 1
        assert summary.failed == 1
        assert "stale-2" not in memory_index.ids(ARTICLES)

    def test_index_failure_logs_orphaned_doc(self, seeded_store, memory_index, caplog) -> None:
        _seed(seeded_store, memory_index, "stale", NOW - timedelta(days=30))
        memory_index.fail_on.add(("delete", ARTICLES, "stale"))

        with caplog.at_level(logging.ERROR, logger="rss_indexer.reap.reaper"):
            reap(seeded_store, memory_index, RETENTION, now=NOW)

        assert seeded_store.get(ARTICLES, "stale") is None
        assert "Orphaned index doc articles/stale" in caplog.text

    def test_store_failure_skips_index_delete(self, memory_index) -> None:
        store = Mock()
        store.iter_article_dates.return_value = [("stale", NOW - timedelta(days=30))]
        store.delete.side_effect = PersistenceError("db down")
        _seed(Mock(), memory_index, "stale", None)

        summary = reap(store, memory_index, RETENTION, now=NOW)

        assert summary.failed == 1
        assert memory_index.ids(ARTICLES) == {"stale"}

    def test_scan_failure_propagates(self, memory_index) -> None:
        store = Mock()
        store.iter_article_dates.side_effect = PersistenceError("db down")

        with pytest.raises(PersistenceError):
            reap(store, memory_index, RETENTION, now=NOW)

    def test_empty_store(self, sqlite_store, memory_index) -> None:
        summary = reap(sqlite_store, memory_index, RETENTION, now=NOW)
        assert (summary.scanned, summary.deleted, summary.failed) == (0, 0, 0)
