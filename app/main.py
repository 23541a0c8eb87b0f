"""
Civic Issue Portal - FastAPI Application Entry Point

Citizens file complaints; admin and department staff triage them.

DESIGN PRINCIPLES:
- Status changes only through the workflow engine
- Actor identity is passed explicitly on every request
- A completed complaint rewards its reporter at most once
- Dashboards reload the full list on a timer or on a pushed event
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    Forbidden,
    IllegalTransition,
    NotFound,
    PortalError,
    StoreUnavailable,
)
from app.core.logging import configure_logging
from app.core.settings import settings
from app.routes import admin, auth, complaints, department, events, health

configure_logging()
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Crowdsourced civic issue reporting with role-gated triage",
    debug=settings.DEBUG,
)


ERROR_STATUS = {
    IllegalTransition: status.HTTP_409_CONFLICT,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(PortalError)
async def portal_exception_handler(request: Request, exc: PortalError):
    """Map workflow errors to HTTP responses."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.error_code}): {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


# Global exception handler to catch everything else
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Internal server error: {str(exc)}"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Currently: Firestore connection (skipped in mock mode)
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} (profile {settings.WORKFLOW_PROFILE})")

    if settings.USE_MOCK_DB:
        logger.info("USE_MOCK_DB=true, using in-memory stores")
        return

    try:
        from app.config.firebase import initialize_firestore
        initialize_firestore()
    except Exception as e:
        logger.warning(f"Firestore initialization failed: {e}. The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(complaints.router)
app.include_router(admin.router)
app.include_router(department.router)
app.include_router(events.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "workflow_profile": settings.WORKFLOW_PROFILE,
    }
