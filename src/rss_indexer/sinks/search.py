"""Search index sink backed by Elasticsearch."""

import logging
from typing import Any, Mapping

from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError

from rss_indexer.errors import PersistenceError

logger = logging.getLogger(__name__)

# The only fields ever pushed to the index; rows carry more.
INDEXED_FIELDS = ("title", "description")


def create_search_client(hosts: list[str] | str, request_timeout: float = 30) -> Elasticsearch:
    """Create an ES client whose calls are bounded by `request_timeout` seconds."""
    return Elasticsearch(hosts, request_timeout=request_timeout)


def project(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Narrow a row down to its indexed fields."""
    return {name: fields[name] for name in INDEXED_FIELDS if name in fields}


class SearchIndex:
    """Index sink: partial update, falling back to create when the document is missing."""

    def __init__(self, client: Elasticsearch):
        self.client = client

    def ping(self) -> None:
        try:
            self.client.info()
        except (ApiError, TransportError) as e:
            raise PersistenceError(f"Elasticsearch unreachable: {e}") from e

    def upsert(self, collection: str, entity_id: str, fields: Mapping[str, Any]) -> None:
        document = project(fields)
        try:
            self.client.update(index=collection, id=entity_id, doc=document)
            return
        except NotFoundError:
            logger.debug("No %s document for %s, creating it", collection, entity_id)
        except (ApiError, TransportError) as e:
            raise PersistenceError(f"ES update of {collection}/{entity_id} failed: {e}") from e

        try:
            self.client.create(index=collection, id=entity_id, document=document)
        except (ApiError, TransportError) as e:
            raise PersistenceError(f"ES create of {collection}/{entity_id} failed: {e}") from e

    def delete(self, collection: str, entity_id: str) -> None:
        try:
            self.client.delete(index=collection, id=entity_id)
        except NotFoundError:
            logger.debug("No %s document for %s, nothing to delete", collection, entity_id)
        except (ApiError, TransportError) as e:
            raise PersistenceError(f"ES delete of {collection}/{entity_id} failed: {e}") from e
