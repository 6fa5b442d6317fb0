"""In-memory rate limit store and fixed-window limiter.

Notes:
- Per-process only: running multiple workers (or serverless instances)
  multiplies the effective limit. Swap the store for a shared one to fix that.
- Thread-safe: the store and the limiter each guard their shared state with
  a lock.
"""

from __future__ import annotations

import contextlib
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitRecord,
    RateLimitResult,
)


@dataclass
class _StoreEntry:
    record: RateLimitRecord
    touched_at: float


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Process-local record store with LRU and idle-time eviction.

    Entries are kept in least-recently-touched order. Writing a record first
    drops entries idle for longer than ``idle_ttl_seconds`` and then the
    oldest entries beyond ``max_entries``, so memory stays bounded no matter
    how many distinct clients show up.

    Evicting a record only forgets a client; its next request starts a fresh
    window. Keep ``idle_ttl_seconds`` at or above the limiter window so idle
    eviction never cuts a live window short.
    """

    def __init__(
        self,
        *,
        max_entries: int | None = 10_000,
        idle_ttl_seconds: float | None = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if idle_ttl_seconds is not None and idle_ttl_seconds <= 0:
            raise ValueError("idle_ttl_seconds must be > 0")

        self._max_entries = max_entries
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: OrderedDict[str, _StoreEntry] = OrderedDict()
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    @property
    def evictions(self) -> int:
        return self._evictions

    def _is_idle(self, entry: _StoreEntry, now: float) -> bool:
        return self._idle_ttl is not None and now - entry.touched_at > self._idle_ttl

    def get(self, key: str) -> RateLimitRecord | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_idle(entry, now):
                del self._entries[key]
                self._evictions += 1
                return None
            return entry.record

    def set(self, key: str, record: RateLimitRecord) -> None:
        now = self._clock()
        with self._lock:
            self._entries[key] = _StoreEntry(record=record, touched_at=now)
            self._entries.move_to_end(key)
            self._evict(now)

    def _evict(self, now: float) -> None:
        """Drop idle entries, then the least recently touched over capacity.

        Must be called with the lock held.
        """
        while self._entries:
            oldest = next(iter(self._entries.values()))
            if not self._is_idle(oldest, now):
                break
            self._entries.popitem(last=False)
            self._evictions += 1

        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
            self._evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class FixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter with a per-client window that opens on the first request.

    Each client key gets a window of ``window_seconds`` starting at the first
    request seen from it. Requests inside the window increment the counter;
    once the counter passes ``limit`` further requests are rejected until the
    window has elapsed, at which point the next request opens a new window
    with a count of one. Rejected requests are still counted.

    With ``atomic=True`` the read-modify-write against the store happens
    under a lock, so concurrent requests for the same key can never push the
    accepted count above ``limit``. With ``atomic=False`` two simultaneous
    requests may both read the same count and the limit can be overshot.
    """

    def __init__(
        self,
        *,
        store: AbstractRateLimitStore,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
        atomic: bool = True,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Record store holding per-key counters.
            limit: Maximum number of allowed requests per window.
            window_seconds: Size of the window in seconds.
            clock: Time source function returning UNIX time in seconds.
            atomic: Serialize counter updates across threads.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._store = store
        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._atomic = atomic

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def atomic(self) -> bool:
        return self._atomic

    def _guard(self):
        return self._lock if self._atomic else contextlib.nullcontext()

    def _next_record(self, current: RateLimitRecord | None, now: float) -> RateLimitRecord:
        if current is None or now - current.window_start > self._window_seconds:
            return RateLimitRecord(count=1, window_start=now)
        return RateLimitRecord(count=current.count + 1, window_start=current.window_start)

    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it may proceed.

        Args:
            key: Unique identifier for rate limiting (e.g., client address).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        with self._guard():
            record = self._next_record(self._store.get(key), now)
            self._store.set(key, record)

        reset_at = record.window_start + self._window_seconds
        remaining = max(0, self._limit - record.count)

        if record.count <= self._limit:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=remaining,
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
        )
