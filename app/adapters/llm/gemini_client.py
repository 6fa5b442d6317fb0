"""Google Gemini generateContent client adapter."""

import logging
from typing import Any

import httpx

from app.adapters.llm.base import AbstractLLMClient, UpstreamResponse
from app.core.errors import ForwardingAppError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(AbstractLLMClient):
    """Client posting raw request bodies to the Gemini REST API.

    The API key travels as the ``key`` query parameter. No retries, no
    streaming: the whole reply is buffered before it is returned.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key injected into every request.
            model: Model id (e.g., "gemini-2.5-flash").
            base_url: Base URL of the generative-language REST API.
            timeout_seconds: Request timeout in seconds; None disables it.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def endpoint(self) -> str:
        """generateContent URL for the configured model, without the key."""
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _scrub(self, text: str) -> str:
        # httpx error messages may echo the request URL, key included.
        if not self._api_key:
            return text
        return text.replace(self._api_key, "[REDACTED]")

    async def generate_content(self, payload: Any) -> UpstreamResponse:
        """POST ``payload`` to generateContent and parse the JSON reply.

        Args:
            payload: JSON-compatible request body forwarded verbatim.

        Returns:
            UpstreamResponse: Upstream status code and parsed JSON body.

        Raises:
            ForwardingAppError: If the request fails or the body is not JSON.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.endpoint,
                    params={"key": self._api_key},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
            data = response.json()
        except Exception as exc:
            raise ForwardingAppError(
                code="upstream_request_failed",
                message="Failed to fetch from Gemini API.",
                details={
                    "error_type": type(exc).__name__,
                    "hint": self._scrub(str(exc)),
                },
            ) from exc

        logger.debug(
            "gemini.response_received",
            extra={
                "model": self.model,
                "upstream_status": response.status_code,
            },
        )
        return UpstreamResponse(status_code=response.status_code, payload=data)
