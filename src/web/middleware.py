"""
HTTP middleware for the Maven staffing API.

- RequestIDMiddleware: request id in state, logs and response headers
- setup_cors: CORS for the configured front-end origins
"""

import logging
import time
from typing import List, Optional
from uuid import uuid4

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from config.logging_setup import request_id_var

logger = logging.getLogger(__name__)


# =============================================================================
# Request ID Middleware
# =============================================================================

class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Inject request ID into all requests for tracing.

    An incoming X-Request-ID header is kept; otherwise one is generated.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or f"REQ-{uuid4().hex[:16]}"
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"request_id": request_id, "duration_ms": round(duration_ms, 2)},
        )

        response.headers["X-Request-ID"] = request_id
        return response


# =============================================================================
# CORS Middleware
# =============================================================================

def setup_cors(app, origins: Optional[List[str]] = None):
    """
    Setup CORS middleware.

    Args:
        app: FastAPI application
        origins: List of allowed origins (default: local front-end dev servers)
    """
    if origins is None:
        origins = [
            "http://localhost:5173",
            "http://localhost:3000",
        ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
