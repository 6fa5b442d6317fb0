"""Proxy service forwarding browser requests to the Gemini API.

This is the core of the application. For each forwarded request it:
- Counts the request against the caller's rate limit budget (optional)
- Resolves the upstream client, failing when no API key is configured
- Decodes the inbound JSON body and forwards it verbatim
- Maps the upstream reply onto the proxy's response contract

ProxyOptions carries two flags: ``enable_rate_limit`` counts every request
against the caller's budget, and ``enable_quota_mapping`` collapses upstream
quota errors into the QUOTA_EXCEEDED sentinel.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from app.adapters.llm.base import AbstractLLMClient, UpstreamResponse
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.config import settings
from app.core.errors import (
    ForwardingAppError,
    RateLimitAppError,
    UpstreamAppError,
    UpstreamQuotaAppError,
    ValidationAppError,
)
from app.core.rate_limit import build_rate_limit_headers, hash_client_key

logger = logging.getLogger(__name__)

QUOTA_SENTINEL = "QUOTA_EXCEEDED"
RATE_LIMIT_MESSAGE = "Too many requests. Please wait a minute."
INVALID_BODY_MESSAGE = "Request body must be valid JSON."
UPSTREAM_ERROR_PREFIX = "Gemini API Error: "
FORWARDING_FAILED_MESSAGE = "Failed to fetch from Gemini API."


@dataclass(frozen=True)
class ProxyOptions:
    """Feature flags of the proxy handler."""

    enable_rate_limit: bool = True
    enable_quota_mapping: bool = False

    @classmethod
    def from_settings(cls) -> "ProxyOptions":
        return cls(
            enable_rate_limit=settings.app.rate_limit_enabled,
            enable_quota_mapping=settings.app.quota_mapping_enabled,
        )


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by json.loads but are not JSON.
    raise ValueError(f"invalid JSON constant: {name}")


def decode_body(raw_body: bytes) -> Any:
    """Decode the inbound request body.

    Args:
        raw_body: Raw request bytes.

    Returns:
        The decoded JSON value; an empty body decodes to an empty object.

    Raises:
        ValidationAppError: If the body is not valid JSON.
    """
    if not raw_body.strip():
        return {}
    try:
        return json.loads(raw_body, parse_constant=_reject_constant)
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_json_body",
            message=INVALID_BODY_MESSAGE,
            details={"error_type": type(exc).__name__},
        ) from exc


def extract_upstream_error(payload: Any) -> tuple[bool, str]:
    """Pull the error message out of an upstream payload.

    Returns:
        Tuple of (has_error, message). ``message`` is empty when there is no
        error object.
    """
    if not isinstance(payload, dict):
        return False, ""

    error = payload.get("error")
    if error is None or error is False or error == "" or error == 0:
        return False, ""

    if isinstance(error, dict):
        message = error.get("message")
        return True, str(message) if message is not None else "Unknown error"
    return True, str(error)


class ProxyService:
    """Rate limit, authenticate and forward one request to the upstream API."""

    def __init__(
        self,
        *,
        client_factory: Callable[[], AbstractLLMClient],
        limiter: AbstractRateLimiter | None = None,
        options: ProxyOptions | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            client_factory: Builds the upstream client; raises
                ConfigurationAppError when the API key is missing.
            limiter: Rate limiter; required when rate limiting is enabled.
            options: Feature flags; defaults to rate limiting on, quota
                mapping off.

        Raises:
            ValueError: If rate limiting is enabled without a limiter.
        """
        self._client_factory = client_factory
        self._limiter = limiter
        self._options = options or ProxyOptions()

        if self._options.enable_rate_limit and self._limiter is None:
            raise ValueError("a limiter is required when rate limiting is enabled")

    @property
    def options(self) -> ProxyOptions:
        return self._options

    def enforce_rate_limit(self, client_key: str) -> None:
        """Count the request and reject it once the budget is spent.

        Raises:
            RateLimitAppError: When the client exceeded the limit.
        """
        if not self._options.enable_rate_limit or self._limiter is None:
            return

        result = self._limiter.consume(client_key)
        key_hash = hash_client_key(client_key)

        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=RATE_LIMIT_MESSAGE,
            details={
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
                "retry_after": result.retry_after_seconds or 0,
            },
            headers=build_rate_limit_headers(result),
        )

    def map_upstream_response(self, upstream: UpstreamResponse) -> Any:
        """Translate the upstream reply into the payload relayed to the caller.

        Args:
            upstream: Buffered upstream reply.

        Returns:
            The upstream payload, untouched, when it carries no error.

        Raises:
            ForwardingAppError: Upstream body is JSON null.
            UpstreamQuotaAppError: Quota exhausted (quota mapping only).
            UpstreamAppError: Upstream reported any other error.
        """
        if upstream.payload is None:
            raise ForwardingAppError(
                code="upstream_request_failed",
                message=FORWARDING_FAILED_MESSAGE,
                details={"upstream_status": upstream.status_code, "hint": "null response body"},
            )

        has_error, message = extract_upstream_error(upstream.payload)

        if self._options.enable_quota_mapping and (
            upstream.status_code == 429 or "quota" in message.lower()
        ):
            raise UpstreamQuotaAppError(
                code=QUOTA_SENTINEL,
                message=QUOTA_SENTINEL,
                details={
                    "upstream_status": upstream.status_code,
                    "upstream_message": message,
                },
            )

        if has_error:
            raise UpstreamAppError(
                code="upstream_error",
                message=f"{UPSTREAM_ERROR_PREFIX}{message}",
                details={
                    "upstream_status": upstream.status_code,
                    "upstream_message": message,
                },
            )

        return upstream.payload

    async def forward(self, client_key: str, raw_body: bytes) -> Any:
        """Run one forwarded request through the whole pipeline.

        Args:
            client_key: Identifier the request is rate limited under.
            raw_body: Inbound request body.

        Returns:
            The upstream success payload.

        Raises:
            AppError: Any of the domain errors mapped to HTTP by the
                exception handlers.
        """
        self.enforce_rate_limit(client_key)

        client = self._client_factory()
        payload = decode_body(raw_body)
        upstream = await client.generate_content(payload)

        logger.info(
            "proxy.forwarded",
            extra={
                "key_hash": hash_client_key(client_key),
                "upstream_status": upstream.status_code,
            },
        )
        return self.map_upstream_response(upstream)
