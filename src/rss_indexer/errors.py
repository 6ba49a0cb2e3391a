"""Error classes for the ingestion cycle.

All of them are scoped to a single feed (or a single row, for the reaper)
and are caught by the cycle runner; none terminates the process.
"""


class IngestError(Exception):
    """Base class for feed-scoped ingestion failures."""


class FetchError(IngestError):
    """Network failure, non-2xx response or malformed feed document."""


class ValidationError(IngestError):
    """A required channel field is empty."""


class PersistenceError(IngestError):
    """A write to or delete from the store or the search index failed."""
