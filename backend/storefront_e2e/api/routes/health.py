"""
Health check endpoints.
"""

from datetime import datetime

from fastapi import APIRouter

from storefront_e2e import __version__
from storefront_e2e.config import settings
from storefront_e2e.steps import LIBRARIES

router = APIRouter()


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.app_env,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check - verifies fixtures and step libraries are in place.
    """
    checks = {
        "api": True,
        "fixtures_present": any(settings.fixtures_dir.glob("*.html")),
        "step_libraries_loaded": bool(LIBRARIES),
    }

    return {
        "ready": all(checks.values()),
        "checks": checks,
        "base_url": settings.base_url,
        "timestamp": datetime.utcnow().isoformat(),
    }
