"""
Application errors.

Services raise these internally; the service entry points (ingest, search,
status, directory lookups) convert them into failure envelopes so nothing
escapes the tool boundary.
"""


class ProfIndexError(Exception):
    """Base class for errors raised by the profile index core."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(ProfIndexError):
    """Raised when an institution reference resolves to nothing."""


class UpstreamError(ProfIndexError):
    """Raised on a non-success response from OpenAlex or the indexing backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class QueryTooBroadError(ProfIndexError):
    """Raised when a search query is too long or batches too many OR clauses."""


class ProviderMisconfiguredError(ProfIndexError):
    """Raised when a required credential or endpoint (Milvus, HF) is not configured."""


class StoreNotFoundError(ProfIndexError):
    """Raised by the indexing backend when a named store does not exist."""

    def __init__(self, store: str) -> None:
        self.store = store
        super().__init__(f"Store not found: {store}")


class HarvestCancelledError(ProfIndexError):
    """Raised when a harvest observes its cancellation signal."""
