"""
Engine Error Taxonomy

Storage errors (StoreError, StoreTimeoutError) belong to the db layer.
These are the errors the engine itself raises to its callers.

A rejected bulk mutation is NOT an exception: it is reported through
BulkOperationResult.errors so the caller can still read the counts.
"""

from contextlib import contextmanager
from typing import Any, Generator, Optional

from ..db.store import StoreError, StoreTimeoutError
from ..observability import get_logger

logger = get_logger(__name__)


class EngineError(Exception):
    """Base exception for analytics engine errors."""
    pass


class FetchFailure(EngineError):
    """
    The store could not be reached, timed out, or rejected a read.

    The message is the store's own message, unchanged.
    """

    def __init__(self, message: str, *, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class AuthorizationFailure(EngineError):
    """A mutation was attempted without admin rights."""

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class MalformedRemoteRow(EngineError):
    """
    A grouping-procedure row lacks a field needed to identify the person.

    Raised per row during normalization and caught by the aggregator,
    which skips the row.
    """

    def __init__(self, reason: str, row: Optional[dict[str, Any]] = None):
        super().__init__(reason)
        self.row = row


@contextmanager
def fetching(what: str) -> Generator[None, None, None]:
    """
    Translate store errors raised inside the block into FetchFailure.

    Usage:
        with fetching("reports"):
            reports = store.fetch_reports()
    """
    try:
        yield
    except StoreTimeoutError as e:
        logger.warning(f"Timed out fetching {what}", error=str(e))
        raise FetchFailure(str(e), timed_out=True) from e
    except StoreError as e:
        logger.warning(f"Failed to fetch {what}", error=str(e))
        raise FetchFailure(str(e)) from e
