"""Retention sweep: evicts articles older than the retention window."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from rss_indexer.errors import PersistenceError
from rss_indexer.models import ReapSummary
from rss_indexer.sinks.base import ARTICLES, Sink
from rss_indexer.sinks.postgres import PostgresStore

logger = logging.getLogger(__name__)


def is_expired(pubdate: Optional[datetime], now: datetime, retention: timedelta) -> bool:
    """True if the article is strictly older than `retention`.

    A missing pubdate counts as expired.
    """
    if pubdate is None:
        return True
    if pubdate.tzinfo is None:
        pubdate = pubdate.replace(tzinfo=timezone.utc)
    return now - pubdate > retention


def reap(
    store: PostgresStore,
    index: Sink,
    retention: timedelta,
    now: Optional[datetime] = None,
) -> ReapSummary:
    """Delete expired articles from the store, then from the index.

    Sites are never deleted. A failed deletion is logged and counted, and
    the sweep moves on to the next article.

    Raises:
        PersistenceError: If the article list itself cannot be read
    """
    logger.info("Cleanup...")
    now = now or datetime.now(timezone.utc)
    summary = ReapSummary()

    for article_id, pubdate in store.iter_article_dates():
        summary.scanned += 1
        if not is_expired(pubdate, now, retention):
            continue

        try:
            store.delete(ARTICLES, article_id)
        except PersistenceError as e:
            logger.error("Failed to delete article %s: %s", article_id, e)
            summary.failed += 1
            continue

        # the row is gone, so no later sweep will find this document again
        try:
            index.delete(ARTICLES, article_id)
        except PersistenceError as e:
            logger.error("Orphaned index doc %s/%s after its row was deleted: %s", ARTICLES, article_id, e)
            summary.failed += 1
            continue

        summary.deleted += 1

    logger.info(
        "Done. %d rows scanned. %d rows deleted. %d deletions failed",
        summary.scanned, summary.deleted, summary.failed,
    )
    return summary
