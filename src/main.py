"""
FastAPI application entry point.

This module sets up:
- FastAPI application with middleware
- Exception handlers
- Rate limiting with Redis
- API routes
- CORS configuration
"""

import logging

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import audit_logs, auth, health, messages, root, users
from core import settings
from core.exceptions import AppException
from core.handlers import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    rate_limit_handler,
    validation_exception_handler,
)
from core.lifespan import lifespan
from core.logging import setup_logging
from core.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from core.rate_limit import limiter

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# FastAPI Application
# ============================================================================
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description=settings.description,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Attach rate limiter to app
app.state.limiter = limiter


# ============================================================================
# Exception Handlers
# ============================================================================
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(Exception, general_exception_handler)


# ============================================================================
# Middleware Setup (Order matters!)
# ============================================================================
# Starlette runs the last added middleware first: CORS wraps everything,
# then request id, logging and security headers.

# 1. Security headers middleware
app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=settings.is_production,
    allow_docs=settings.debug,
)

# 2. Request logging middleware (logs all requests with request_id)
app.add_middleware(RequestLoggingMiddleware)

# 3. Request ID middleware (sets request_id before logging runs)
app.add_middleware(RequestIDMiddleware)

# 4. CORS middleware (outermost, so headers reach every response)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# API Routes
# ============================================================================
api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(messages.router)
api_router.include_router(audit_logs.router)

# Include Application Routers
app.include_router(root.router)
app.include_router(health.router)
app.include_router(api_router)
