"""Time-bounded cache for the segment read path."""

from __future__ import annotations

import threading
import time
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SegmentCache(Generic[T]):
    """
    Holds one loaded value for ``ttl_seconds``.

    The clock is injectable for tests. :meth:`invalidate` drops the value so
    the next read reloads, which the sync pipeline calls after reconciliation.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._loaded_at: Optional[float] = None

    def _fresh(self) -> bool:
        return self._loaded_at is not None and self._clock() - self._loaded_at < self.ttl_seconds

    def get_or_load(self, loader: Callable[[], T]) -> T:
        with self._lock:
            if self._fresh():
                return self._value  # type: ignore[return-value]
            value = loader()
            self._value = value
            self._loaded_at = self._clock()
            return value

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._loaded_at = None


__all__ = ["SegmentCache"]
