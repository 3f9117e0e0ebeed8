"""Practice Manager FastAPI Application - Main Entry Point

Therapist practice management API: clients, sessions, notes, dashboard
analytics and subscription billing. Identity comes from the x-user-id
header set by the authentication gateway.
"""

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src import config
from src.api.billing import router as billing_router
from src.api.clients import router as clients_router
from src.api.dashboard import router as dashboard_router
from src.api.dependencies import FormValidationError
from src.api.notes import router as notes_router
from src.api.sessions import router as sessions_router
from src.api.therapists import router as therapists_router

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"

# Create FastAPI app with environment-aware configuration
app = FastAPI(
    title="Practice Manager",
    version=VERSION,
    description="Client, session and note management for therapy practices",
    docs_url="/docs" if config.docs_enabled() else None,
    redoc_url="/redoc" if config.docs_enabled() else None,
)


# =============================================================================
# Health Checks
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint for the load balancer"""
    return {
        "status": "healthy",
        "service": "practice-manager",
        "version": VERSION,
    }


@app.get("/healthz")
async def healthz():
    """Kubernetes-style health check"""
    return {"status": "ok"}


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    """Return structured validation errors without exposing internal details"""
    errors: dict[str, str] = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"] if part != "body")
        errors.setdefault(path or "body", err["msg"])
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Invalid request",
            "type": "validation_error",
            "errors": errors,
        },
    )


@app.exception_handler(FormValidationError)
async def form_validation_exception_handler(request, exc: FormValidationError):
    """Per-field messages for a rejected form"""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Invalid request",
            "type": "validation_error",
            "errors": exc.errors,
        },
    )


# =============================================================================
# API Routers
# =============================================================================

app.include_router(therapists_router)
app.include_router(clients_router)
app.include_router(sessions_router)
app.include_router(notes_router)
app.include_router(dashboard_router)
app.include_router(billing_router)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "service": "practice-manager",
        "description": "Therapy practice management",
        "version": VERSION,
        "docs": "/docs" if config.docs_enabled() else None,
    }


if __name__ == "__main__":
    import uvicorn
    logger.info("api_starting", env=config.PRACTICE_ENV)
    uvicorn.run(app, host="0.0.0.0", port=8000, workers=2)
