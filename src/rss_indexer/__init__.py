"""Periodic RSS ingestion into PostgreSQL and Elasticsearch."""
