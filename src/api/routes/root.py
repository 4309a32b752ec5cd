"""
Root Endpoints
"""

from fastapi import APIRouter

from core.config import settings

router = APIRouter(tags=["Root"])


@router.get("/")
async def root() -> dict[str, object]:
    """
    Root endpoint.

    Returns:
        Service banner with API information
    """
    return {
        "success": True,
        "message": f"Welcome to {settings.app_name}",
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "health": "/health",
    }
