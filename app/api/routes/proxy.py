from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.adapters.llm.factory import create_llm_client
from app.core.rate_limit import get_rate_limiter, resolve_client_key
from app.services.proxy_service import ProxyOptions, ProxyService

router = APIRouter(tags=["Proxy"])


def get_proxy_service() -> ProxyService:
    """Build the proxy service from current settings.

    The limiter is process-wide (counters survive across requests); the
    options and upstream client are resolved per request.
    """
    options = ProxyOptions.from_settings()
    return ProxyService(
        client_factory=create_llm_client,
        limiter=get_rate_limiter() if options.enable_rate_limit else None,
        options=options,
    )


@router.post("/api/proxy")
async def proxy(
    request: Request,
    service: ProxyService = Depends(get_proxy_service),
) -> Any:
    """Forward a generateContent request body to the Gemini API.

    The body is opaque JSON, forwarded verbatim with the server-held API key
    attached. Preflight ``OPTIONS`` requests are answered by the CORS
    middleware before reaching this route.

    Returns:
        JSONResponse: The upstream payload with status 200.

    Raises:
        AppError: Rendered as ``{"error": ...}`` by the exception handlers
            (400, 429 or 500).
    """
    client_key = resolve_client_key(request)
    raw_body = await request.body()
    payload = await service.forward(client_key, raw_body)
    return JSONResponse(status_code=200, content=payload)
