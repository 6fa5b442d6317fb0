"""Rate limiter wiring for the HTTP layer.

This module builds the process-wide limiter from settings and derives the
client key each request is counted against.

Rate limiting strategy:
- Per-client window of ``APP_RATE_LIMIT_WINDOW_SECONDS`` opened by the
  client's first request, ``APP_RATE_LIMIT_REQUESTS`` requests per window.
- Client key: first address in X-Forwarded-For (set by the serverless edge),
  falling back to the transport peer address.
"""

from __future__ import annotations

import hashlib
import threading

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import FixedWindowRateLimiter, InMemoryRateLimitStore
from app.core.config import settings

FORWARDED_FOR_HEADER = "x-forwarded-for"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple | None = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve counters across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    cfg = settings.app
    config = (
        cfg.rate_limit_requests,
        cfg.rate_limit_window_seconds,
        cfg.rate_limit_max_clients,
        cfg.rate_limit_idle_ttl_seconds,
        cfg.rate_limit_atomic,
    )

    # Dependencies run in the threadpool; concurrent cold-start requests
    # must share one limiter.
    with _limiter_lock:
        if _limiter is None or _limiter_config != config:
            store = InMemoryRateLimitStore(
                max_entries=cfg.rate_limit_max_clients,
                # Idle eviction must never end a live window early.
                idle_ttl_seconds=max(cfg.rate_limit_idle_ttl_seconds, cfg.rate_limit_window_seconds),
            )
            _limiter = FixedWindowRateLimiter(
                store=store,
                limit=cfg.rate_limit_requests,
                window_seconds=cfg.rate_limit_window_seconds,
                atomic=cfg.rate_limit_atomic,
            )
            _limiter_config = config

        return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter and all of its counters."""

    global _limiter, _limiter_config
    with _limiter_lock:
        _limiter = None
        _limiter_config = None


def resolve_client_key(request: Request) -> str:
    """Derive the rate limit key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: First X-Forwarded-For address, else the peer host, else "unknown".
    """

    forwarded_for = request.headers.get(FORWARDED_FOR_HEADER, "")
    first = forwarded_for.split(",")[0].strip()
    if first:
        return first

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def hash_client_key(key: str) -> str:
    """Hash the client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Headers describing the client's budget, sent with a 429."""

    if not settings.app.rate_limit_include_headers:
        return {}
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }
