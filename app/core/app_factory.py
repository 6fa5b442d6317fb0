"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the serverless entrypoint build the exact same application.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import health_router, proxy_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import cors_middleware, request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Gemini Proxy",
        description=(
            "Forwards generateContent requests from browser clients to the "
            "Gemini API, injecting a server-held API key and adding CORS "
            "headers. Optional per-client rate limiting."
        ),
        version="0.1.0",
    )

    # Middleware: the last registered runs first, so request ids wrap CORS
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(proxy_router)
    app.include_router(health_router)

    return app
