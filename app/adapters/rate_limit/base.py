"""Rate limiter interfaces.

The proxy depends on these abstractions (not the concrete implementations)
so the counter store can be swapped for a shared cache (e.g., Redis) without
touching the handler logic, and replaced by a fake in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RateLimitRecord:
    """Per-client counter for the current window.

    Attributes:
        count: Requests seen in the current window (blocked ones included).
        window_start: UNIX time in seconds when the window opened.
    """

    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimitStore(ABC):
    """Key/value store holding one RateLimitRecord per client key."""

    @abstractmethod
    def get(self, key: str) -> RateLimitRecord | None:
        """Return the record for ``key`` or None when the client is unknown."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, record: RateLimitRecord) -> None:
        """Create or overwrite the record for ``key``."""
        raise NotImplementedError


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Count one request for a given key.

        Args:
            key: Unique client identifier (e.g., forwarded-for address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
