"""One ingestion cycle: fan out over feeds, join, then reap."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Optional

from rss_indexer.config import Config
from rss_indexer.errors import FetchError, PersistenceError, ValidationError
from rss_indexer.fetch_feeds.fetch_feed import fetch_feed
from rss_indexer.models import CycleSummary, FeedDocument, FeedResult, FeedStatus
from rss_indexer.reap.reaper import reap
from rss_indexer.sinks.writer import DualSinkWriter

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], FeedDocument]


class InFlightFeeds:
    """Feed URLs whose processing task has not returned yet.

    A task that outlives its cycle's deadline keeps its claim until it
    finishes, so a later cycle never runs a second writer for that feed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._urls: set[str] = set()

    def claim(self, feed_url: str) -> bool:
        with self._lock:
            if feed_url in self._urls:
                return False
            self._urls.add(feed_url)
            return True

    def release(self, feed_url: str) -> None:
        with self._lock:
            self._urls.discard(feed_url)

    def __contains__(self, feed_url: str) -> bool:
        with self._lock:
            return feed_url in self._urls


_in_flight = InFlightFeeds()


def process_feed(feed_url: str, writer: DualSinkWriter, fetch: FetchFn) -> FeedResult:
    """Fetch one feed and write its site and articles.

    Every ingestion error is caught here and reported in the FeedResult, so
    one bad feed never affects the others.
    """
    try:
        document = fetch(feed_url)
    except FetchError as e:
        logger.error("%s", e)
        return FeedResult(feed_url, FeedStatus.FETCH_ERROR, error=str(e))

    try:
        site_id = writer.upsert_site(feed_url, document.channel)
    except ValidationError as e:
        logger.warning("Skipping feed %s: %s", feed_url, e)
        return FeedResult(feed_url, FeedStatus.VALIDATION_ERROR, error=str(e))
    except PersistenceError as e:
        logger.error("Failed to write site for %s: %s", feed_url, e)
        return FeedResult(feed_url, FeedStatus.PERSISTENCE_ERROR, error=str(e))

    try:
        written = writer.upsert_articles(site_id, document.items)
    except PersistenceError as e:
        logger.error("Failed to write articles for %s: %s", feed_url, e)
        return FeedResult(feed_url, FeedStatus.PERSISTENCE_ERROR, site_id=site_id, error=str(e))

    status = FeedStatus.TRUNCATED if written.halted else FeedStatus.OK
    logger.info("Wrote %d articles from %s (%s)", written.written, feed_url, status.value)
    return FeedResult(feed_url, status, site_id=site_id, articles_written=written.written)


def _process_claimed(
    feed_url: str,
    writer: DualSinkWriter,
    fetch: FetchFn,
    in_flight: InFlightFeeds,
) -> FeedResult:
    try:
        return process_feed(feed_url, writer, fetch)
    finally:
        in_flight.release(feed_url)


def run_cycle(
    feed_urls: list[str],
    writer: DualSinkWriter,
    config: Config,
    fetch: Optional[FetchFn] = None,
    in_flight: Optional[InFlightFeeds] = None,
) -> CycleSummary:
    """Process every feed on a bounded worker pool, then sweep expired articles.

    Feeds still running when `cycle_timeout` expires are reported as timed
    out and the reaper proceeds without them. Such a feed stays claimed in
    `in_flight` and is reported as still running, not resubmitted, by later
    cycles until its task returns.
    """
    if in_flight is None:
        in_flight = _in_flight

    summary = CycleSummary(started_at=datetime.now(timezone.utc))
    logger.info("Scraping data from %d feeds...", len(feed_urls))

    if fetch is None:
        fetch = partial(fetch_feed, timeout=config.fetch.timeout, user_agent=config.fetch.user_agent)

    executor = ThreadPoolExecutor(max_workers=config.workers.max_workers, thread_name_prefix="feed")
    try:
        futures = []
        for url in feed_urls:
            if not in_flight.claim(url):
                futures.append((url, None))
                continue
            futures.append((url, executor.submit(_process_claimed, url, writer, fetch, in_flight)))

        _, not_done = wait(
            [future for _, future in futures if future is not None],
            timeout=config.workers.cycle_timeout or None,
        )

        for url, future in futures:
            if future is None:
                logger.warning("Feed %s is still running from an earlier cycle, skipping it", url)
                summary.results.append(
                    FeedResult(url, FeedStatus.STILL_RUNNING, error="earlier task still running")
                )
                continue
            if future in not_done:
                if future.cancel():
                    in_flight.release(url)
                logger.error("Feed %s did not finish within %ss", url, config.workers.cycle_timeout)
                summary.results.append(FeedResult(url, FeedStatus.TIMED_OUT, error="cycle timeout"))
                continue
            try:
                summary.results.append(future.result())
            except Exception as e:
                logger.exception("Unexpected error processing %s", url)
                summary.results.append(FeedResult(url, FeedStatus.ERROR, error=repr(e)))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    try:
        summary.reap = reap(writer.store, writer.index, config.schedule.retention)
    except PersistenceError as e:
        logger.error("Cleanup failed: %s", e)

    summary.finished_at = datetime.now(timezone.utc)
    _log_summary(summary)
    return summary


def _log_summary(summary: CycleSummary) -> None:
    elapsed = (summary.finished_at - summary.started_at).total_seconds()
    counts = ", ".join(f"{status}={count}" for status, count in summary.status_counts().items())
    logger.info(
        "Cycle finished in %.2fs: %d feeds (%s), %d articles written",
        elapsed, len(summary.results), counts or "none", summary.articles_written,
    )
