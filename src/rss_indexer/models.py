"""Data models for the rss_indexer ingestion cycle."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass
class FeedChannel:
    """Channel-level fields of a parsed RSS document."""
    title: str
    link: str
    description: str


@dataclass
class FeedItem:
    """One <item> of a parsed RSS document, pubDate kept as the raw string."""
    title: str
    link: str
    description: str
    pub_date: str


@dataclass
class FeedDocument:
    """A fetched and parsed feed: channel plus items in source order."""
    channel: FeedChannel
    items: list[FeedItem] = field(default_factory=list)


@dataclass
class Site:
    """Site row, one per feed URL."""
    id: str
    url: str
    title: str
    link: str
    description: str

    def row(self) -> dict:
        return {
            "url": self.url,
            "title": self.title,
            "link": self.link,
            "description": self.description,
        }


@dataclass
class Article:
    """Article row, one per item link."""
    id: str
    title: str
    link: str
    description: str
    pubdate: Optional[datetime]
    site_id: str

    def row(self) -> dict:
        return {
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "pubdate": self.pubdate,
            "site_id": self.site_id,
        }


@dataclass
class ArticleWriteResult:
    written: int = 0
    halted: bool = False


class FeedStatus(str, Enum):
    OK = "ok"
    TRUNCATED = "truncated"
    VALIDATION_ERROR = "validation_error"
    FETCH_ERROR = "fetch_error"
    PERSISTENCE_ERROR = "persistence_error"
    TIMED_OUT = "timed_out"
    STILL_RUNNING = "still_running"
    ERROR = "error"


@dataclass
class FeedResult:
    """Outcome of processing one feed within a cycle."""
    feed_url: str
    status: FeedStatus
    site_id: Optional[str] = None
    articles_written: int = 0
    error: Optional[str] = None


@dataclass
class ReapSummary:
    scanned: int = 0
    deleted: int = 0
    failed: int = 0


@dataclass
class CycleSummary:
    """Structured report of one ingestion cycle."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: list[FeedResult] = field(default_factory=list)
    reap: Optional[ReapSummary] = None

    def status_counts(self) -> dict[str, int]:
        counts = Counter(result.status.value for result in self.results)
        return dict(sorted(counts.items()))

    @property
    def articles_written(self) -> int:
        return sum(result.articles_written for result in self.results)
