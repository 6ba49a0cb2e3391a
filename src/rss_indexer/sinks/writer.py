"""Dual-sink writes of sites and articles.

Each entity goes to the relational store first and to the search index
second. There is no transaction spanning the two: if the index write fails
after the store write succeeded, the sinks disagree until a later cycle
reprocesses the same feed.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from common.identity import generate_entity_id
from rss_indexer.clean_feeds.sanitize import (
    is_complete_item,
    parse_pub_date,
    sanitize,
    validate_channel,
)
from rss_indexer.models import Article, ArticleWriteResult, FeedChannel, FeedItem, Site
from rss_indexer.sinks.base import ARTICLES, SITES, Sink
from rss_indexer.sinks.search import project

logger = logging.getLogger(__name__)


class DualSinkWriter:
    def __init__(
        self,
        store: Sink,
        index: Sink,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.index = index
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def upsert_site(self, feed_url: str, channel: FeedChannel) -> str:
        """Write the feed's site to both sinks and return its ID.

        Raises:
            ValidationError: If the channel title or link is empty; nothing is written
            PersistenceError: If either sink write fails
        """
        validate_channel(channel)

        site = Site(
            id=generate_entity_id(feed_url),
            url=feed_url,
            title=sanitize(channel.title),
            link=sanitize(channel.link),
            description=sanitize(channel.description),
        )
        self.store.upsert(SITES, site.id, site.row())
        self.index.upsert(SITES, site.id, project(site.row()))
        return site.id

    def upsert_articles(self, site_id: str, items: list[FeedItem]) -> ArticleWriteResult:
        """Write items in feed order, stopping at the first incomplete one.

        Raises:
            PersistenceError: If a sink write fails; remaining items are not attempted
        """
        result = ArticleWriteResult()
        for position, item in enumerate(items):
            if not is_complete_item(item):
                logger.info(
                    "Empty field in item %d of site %s, skipping the remaining %d items",
                    position, site_id, len(items) - position,
                )
                result.halted = True
                break

            self.upsert_article(site_id, item)
            result.written += 1
        return result

    def upsert_article(self, site_id: str, item: FeedItem) -> str:
        pub_date = sanitize(item.pub_date)
        article = Article(
            id=generate_entity_id(item.link),
            title=sanitize(item.title),
            link=sanitize(item.link),
            description=sanitize(item.description),
            # undated items age from their first ingestion; pubdate is never updated afterwards
            pubdate=parse_pub_date(pub_date) or self._clock(),
            site_id=site_id,
        )
        self.store.upsert(ARTICLES, article.id, article.row())
        self.index.upsert(ARTICLES, article.id, project(article.row()))
        return article.id
