"""Application-level exception types.

This module defines domain errors raised by the proxy service and adapters,
enabling consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Details are logged server-side only; clients receive the message.
    """

    hint: str
    http_status: int
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    upstream_status: int
    upstream_message: str
    error_type: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message returned to the client.
        details: Optional structured details for debugging/observability.
        headers: Optional extra response headers (e.g. Retry-After).
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    headers: dict[str, str] | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when the inbound request cannot be accepted."""


class RateLimitAppError(AppError):
    """Raised when a client exceeds the local request budget."""

    status_code = 429


class ConfigurationAppError(AppError):
    """Raised when required server configuration is missing."""

    status_code = 500


class UpstreamAppError(AppError):
    """Raised when the upstream API reports an error in its payload."""


class UpstreamQuotaAppError(UpstreamAppError):
    """Raised when the upstream API reports an exhausted quota."""

    status_code = 429


class ForwardingAppError(AppError):
    """Raised when the upstream call or its response parsing fails."""

    status_code = 500
