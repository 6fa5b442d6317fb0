"""HTTP middleware for CORS and request correlation.

This module provides the two middlewares every response passes through:

- ``cors_middleware`` stamps the permissive CORS headers on each response so
  a static site on any origin can call the proxy, and answers preflight
  ``OPTIONS`` requests itself with an empty 200. Preflights never reach a
  route, the rate limiter, or the upstream API.
- ``request_id_middleware`` accepts an incoming X-Request-ID header or
  generates a UUID, stores it in contextvars for log correlation, and echoes
  it back together with the request duration.

Usage:
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def apply_cors_headers(response: Response) -> Response:
    """Set the CORS headers on ``response`` in place and return it."""

    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


async def cors_middleware(request: Request, call_next) -> Response:
    """Short-circuit preflight requests and decorate all other responses.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: An empty 200 for ``OPTIONS``; otherwise the downstream
            response with CORS headers added.
    """

    if request.method == "OPTIONS":
        return apply_cors_headers(Response(status_code=200))

    response: Response = await call_next(request)
    return apply_cors_headers(response)


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID is
    generated. The ID is propagated back in the response headers and stored
    in contextvars for log correlation.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
