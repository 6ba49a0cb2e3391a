"""Store and search index sinks."""

from rss_indexer.sinks.base import ARTICLES, SITES, Sink
from rss_indexer.sinks.postgres import PostgresStore
from rss_indexer.sinks.search import SearchIndex
from rss_indexer.sinks.writer import DualSinkWriter

__all__ = ["ARTICLES", "SITES", "Sink", "PostgresStore", "SearchIndex", "DualSinkWriter"]
