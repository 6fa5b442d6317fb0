from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Reports liveness and whether an upstream API key is configured, without
    revealing the key itself.

    Returns:
        dict: ``status`` set to "ok" and an ``upstream_configured`` flag.
    """

    return {
        "status": "ok",
        "upstream_configured": bool(settings.gemini.api_key),
    }
