"""Error taxonomy for the sync pipeline."""

from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    """Base class for sync pipeline errors."""


class FatalAuthError(SyncError):
    """Token refresh failed; the whole run is aborted."""


class StageFetchError(SyncError):
    """A single external fetch (segment, page) failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(StageFetchError):
    """The external API answered 429 and retries were exhausted."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        reset_at: Optional[float] = None,
    ):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after
        self.reset_at = reset_at


class PersistenceError(SyncError):
    """A store write failed. Earlier writes in the same run stay committed."""


__all__ = [
    "FatalAuthError",
    "PersistenceError",
    "RateLimitError",
    "StageFetchError",
    "SyncError",
]
