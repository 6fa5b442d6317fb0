"""Tests for the process-wide limiter built from settings."""

import threading

from app.adapters.rate_limit.in_memory import FixedWindowRateLimiter
from app.core.config import settings
from app.core.rate_limit import get_rate_limiter, reset_rate_limiter


def test_limiter_is_cached_until_config_changes() -> None:
    first = get_rate_limiter()

    assert get_rate_limiter() is first

    settings.app.rate_limit_requests = 3
    rebuilt = get_rate_limiter()

    assert rebuilt is not first
    assert isinstance(rebuilt, FixedWindowRateLimiter)
    assert rebuilt.limit == 3


def test_atomicity_follows_settings() -> None:
    limiter = get_rate_limiter()
    assert isinstance(limiter, FixedWindowRateLimiter)
    assert limiter.atomic is True

    settings.app.rate_limit_atomic = False
    limiter = get_rate_limiter()

    assert isinstance(limiter, FixedWindowRateLimiter)
    assert limiter.atomic is False


def test_concurrent_first_calls_share_one_limiter() -> None:
    reset_rate_limiter()
    barrier = threading.Barrier(8)
    seen: list[int] = []

    def worker() -> None:
        barrier.wait()
        seen.append(id(get_rate_limiter()))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seen) == 8
    assert len(set(seen)) == 1
