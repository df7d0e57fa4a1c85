"""Error taxonomy shared by every layer.

Hard failures are raised as :class:`BookstoreError` subclasses and carry the
HTTP status the API layer answers with.  Soft degradations (enrichment,
cover transfer) never appear here; they travel as warning strings on a
successful result.
"""

from typing import Optional


class BookstoreError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(BookstoreError):
    status_code = 400


class NotFoundError(BookstoreError):
    status_code = 404


class ConflictError(BookstoreError):
    """Raised when an ISBN is already registered."""

    status_code = 409

    def __init__(self, message: str, existing_id: Optional[str] = None):
        super().__init__(message)
        self.existing_id = existing_id


class PersistenceError(BookstoreError):
    status_code = 500


class MetadataProviderError(Exception):
    """A bibliographic provider could not be queried.

    Never surfaces to API callers: the aggregator treats it as an absent
    result for that provider.
    """


class EnrichmentError(Exception):
    """A remote enrichment call failed or returned an unusable payload."""
