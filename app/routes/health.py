"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from app.core.exceptions import StoreUnavailable
from app.core.settings import settings
from app.services.complaint_store import ComplaintStore, get_complaint_store


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "workflow_profile": settings.WORKFLOW_PROFILE,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/db")
async def database_health(store: ComplaintStore = Depends(get_complaint_store)):
    """
    Database connectivity check.
    Performs a lightweight read against the complaint store.
    """
    try:
        info = store.ping()
    except (StoreUnavailable, RuntimeError) as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}",
        )

    return {
        "status": "healthy",
        **info,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
