"""
Global middleware.
"""
import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

SECURE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-XSS-Protection": "0",
}


def register_middleware(app: FastAPI) -> None:
    """Attach request logging and secure response headers."""

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        for name, value in SECURE_HEADERS.items():
            response.headers.setdefault(name, value)
        logger.info(
            "Incoming request method=%s path=%s status=%s duration_ms=%.1f",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response
