"""
FixIt Issue Analysis - FastAPI Application Entry Point

AI-assisted analysis of civic issue photos for the FixIt reporting app.

DESIGN PRINCIPLES:
- AI suggests report fields, citizens and admins decide
- Missing credentials never block startup
- Known AI failures degrade to safe defaults, unknown ones are surfaced
- No storage: every analysis lives for a single request
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.settings import settings
from app.routes import analysis, health


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="AI-assisted analysis of citizen-reported civic issue photos",
    debug=settings.DEBUG
)


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions, log them and answer with an error body."""
    logger.error(
        f"🔥 Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc) or exc.__class__.__name__}
    )


# CORS configuration - only the configured frontend origins may call the API.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Report configuration on startup.
    Only the presence of an API key is logged, never the key.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"[GenAI] AI enabled: {settings.AI_ENABLED}, model: {settings.GEMINI_MODEL}")
    if settings.AI_ENABLED and not settings.resolved_api_key:
        logger.warning("[GenAI] API key present: False. Analysis requests will return fallback results.")
    else:
        logger.info(f"[GenAI] API key present: {bool(settings.resolved_api_key)}")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    """
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(analysis.router)


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
        "analyze_issue": "/analyze-issue"
    }
