"""LLM adapter layer - forwards requests to the upstream generative API."""

from app.adapters.llm.base import AbstractLLMClient, UpstreamResponse
from app.adapters.llm.factory import create_llm_client
from app.adapters.llm.gemini_client import GeminiClient

__all__ = [
    "AbstractLLMClient",
    "GeminiClient",
    "UpstreamResponse",
    "create_llm_client",
]
