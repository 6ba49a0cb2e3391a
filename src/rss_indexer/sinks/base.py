"""Narrow interface shared by the relational store and the search index."""

from typing import Any, Mapping, Protocol

SITES = "sites"
ARTICLES = "articles"


class Sink(Protocol):
    """A keyed document/row collection supporting idempotent writes."""

    def upsert(self, collection: str, entity_id: str, fields: Mapping[str, Any]) -> None:
        """Create the entity, or merge `fields` into it if it already exists."""
        ...

    def delete(self, collection: str, entity_id: str) -> None:
        """Delete the entity; deleting a missing id is not an error."""
        ...
