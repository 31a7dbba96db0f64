"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, Depends
from app.core.settings import settings
from app.services.ai_analysis.registry import get_analysis_service
from app.services.ai_analysis.service import IssueImageAnalysisService
from datetime import datetime, timezone


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
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/ai")
async def ai_health(service: IssueImageAnalysisService = Depends(get_analysis_service)):
    """
    Analysis backend status.
    Reports which model is used and whether it is ready to be called.
    Does not call the model. A missing key is "degraded": requests still
    succeed with fallback results.
    """
    backend = service.describe_backend()
    return {
        "status": "healthy" if backend["enabled"] else "degraded",
        "ai_enabled": settings.AI_ENABLED,
        "model": backend["name"],
        "model_version": backend["version"],
        "backend_ready": backend["enabled"],
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
