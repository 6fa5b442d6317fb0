"""Factory for creating the upstream LLM client."""

import logging

import httpx

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.gemini_client import GeminiClient
from app.core.config import settings
from app.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)


def create_llm_client(
    transport: httpx.AsyncBaseTransport | None = None,
) -> AbstractLLMClient:
    """Instantiate the Gemini client from current settings.

    Called once per forwarded request, so a missing key fails that request
    only and a key provided later is picked up without a restart.

    Args:
        transport: Optional httpx transport handed to the client.

    Returns:
        AbstractLLMClient: Configured client instance.

    Raises:
        ConfigurationAppError: If GEMINI_API_KEY is not set.
    """
    cfg = settings.gemini

    if not cfg.api_key:
        logger.critical(
            "config.gemini_api_key_missing",
            extra={"hint": "Set the GEMINI_API_KEY environment variable"},
        )
        raise ConfigurationAppError(
            code="upstream_api_key_missing",
            message="Server configuration error: API key is missing.",
            details={"hint": "GEMINI_API_KEY is not set"},
        )

    return GeminiClient(
        api_key=cfg.api_key,
        model=cfg.model,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
        transport=transport,
    )
