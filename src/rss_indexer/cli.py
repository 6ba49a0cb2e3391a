"""CLI entry point for the rss-indexer service."""

from __future__ import annotations

import argparse
import logging
import sys
import threading

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from common.cli_helpers import install_stop_handlers, setup_logging
from rss_indexer.config import load_config
from rss_indexer.cycle import run_cycle
from rss_indexer.db.connection import get_database_url, get_engine
from rss_indexer.errors import PersistenceError
from rss_indexer.scheduler import Scheduler
from rss_indexer.sinks.postgres import PostgresStore
from rss_indexer.sinks.search import SearchIndex, create_search_client
from rss_indexer.sinks.writer import DualSinkWriter
from rss_indexer.sources import load_feed_urls

load_dotenv()

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Ingest RSS feeds into PostgreSQL and Elasticsearch on a fixed interval"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config name (test/prod) or path to YAML file. Defaults to CONFIG_ENV or 'prod'",
    )
    parser.add_argument("--feeds", default=None, help="Feed list file (overrides feeds_file)")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1

    feeds_file = args.feeds or config.feeds_file
    try:
        feed_urls = load_feed_urls(feeds_file)
    except OSError as e:
        logger.error("Cannot read feed list %s: %s", feeds_file, e)
        return 1

    try:
        engine = get_engine(get_database_url(), config.store.statement_timeout_ms)
        store = PostgresStore(engine)
        store.ping()
        store.ensure_tables()
    except (ValueError, SQLAlchemyError) as e:
        logger.error("Database unavailable: %s", e)
        return 1

    client = create_search_client(config.search.hosts, config.search.request_timeout)
    index = SearchIndex(client)
    try:
        index.ping()
    except PersistenceError as e:
        logger.error("%s", e)
        engine.dispose()
        return 1

    writer = DualSinkWriter(store, index)
    stop_event = threading.Event()
    install_stop_handlers(stop_event)

    scheduler = Scheduler(
        lambda: run_cycle(feed_urls, writer, config),
        config.schedule.interval,
        stop_event=stop_event,
    )
    try:
        scheduler.run(max_cycles=1 if args.once else None)
    finally:
        client.close()
        engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
