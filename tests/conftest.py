"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any app import so settings are built
from test values.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["GEMINI_MODEL"] = "gemini-test-model"
os.environ.pop("GEMINI_BASE_URL", None)
os.environ["APP_RATE_LIMIT_ENABLED"] = "true"
os.environ["APP_QUOTA_MAPPING_ENABLED"] = "false"
os.environ["APP_RATE_LIMIT_ATOMIC"] = "true"
os.environ["APP_RATE_LIMIT_INCLUDE_HEADERS"] = "true"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from app.core.config import settings
from app.core.rate_limit import reset_rate_limiter


@pytest.fixture(autouse=True)
def _isolate_settings_and_limiter():
    """Restore mutable settings and drop limiter counters around each test."""
    gemini = settings.gemini.model_copy()
    app_cfg = settings.app.model_copy()
    reset_rate_limiter()
    yield
    settings.gemini = gemini
    settings.app = app_cfg
    reset_rate_limiter()
