"""
HTTP middleware for the Visigence API.

This module provides:
- Request ID generation and tracking
- Security headers middleware
- Request/response logging
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to generate and track request IDs.

    The id is stored in ``request.state.request_id`` (audit entries carry
    it), published to the logging correlation filter, and echoed back in
    the ``X-Request-ID`` response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse an upstream id when a proxy already assigned one
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.

    Security headers added:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Content-Security-Policy: API-only policy (docs assets allowed in debug)
    - Strict-Transport-Security: production only
    """

    def __init__(self, app: ASGIApp, enable_hsts: bool = False, allow_docs: bool = False):
        """
        Args:
            app: ASGI application
            enable_hsts: Send Strict-Transport-Security (production only)
            allow_docs: Relax CSP so the Swagger UI assets can load
        """
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.allow_docs = allow_docs

    def _content_security_policy(self) -> str:
        if not self.allow_docs:
            return "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"

        # Swagger UI needs its CDN bundle, inline bootstrap script and blob workers
        return "; ".join(
            [
                "default-src 'self'",
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net blob:",
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
                "img-src 'self' data: https:",
                "frame-ancestors 'none'",
                "worker-src 'self' blob:",
            ]
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = self._content_security_policy()

        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all incoming requests and outgoing responses.

    Log level follows the status code: INFO below 400, WARNING for 4xx,
    ERROR for 5xx. The elapsed time is also returned in ``X-Response-Time``.
    Query strings are not logged since they may carry search terms.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_host = request.client.host if request.client else "unknown"
        user_agent = request.headers.get("User-Agent", "unknown")

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"Request failed: {method} {path} - client={client_host} "
                f"duration={duration:.3f}s error={e}",
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        status_code = response.status_code
        log_message = (
            f"{method} {path} {status_code} - client={client_host} "
            f"duration={duration:.3f}s user_agent={user_agent}"
        )

        if status_code < 400:
            logger.info(log_message)
        elif status_code < 500:
            logger.warning(log_message)
        else:
            logger.error(log_message)

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response
