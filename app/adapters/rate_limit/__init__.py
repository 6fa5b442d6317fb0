"""Rate limiting adapters.

This package provides a small abstraction layer so the proxy can start with
in-memory counters and later migrate to Redis or another shared store without
changing the handler.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitRecord,
    RateLimitResult,
)
from app.adapters.rate_limit.in_memory import FixedWindowRateLimiter, InMemoryRateLimitStore

__all__ = [
    "AbstractRateLimitStore",
    "AbstractRateLimiter",
    "FixedWindowRateLimiter",
    "InMemoryRateLimitStore",
    "RateLimitRecord",
    "RateLimitResult",
]
