"""
Analysis Backend Registry.

Selects the generation backend from configuration and builds the
analysis service around it.
"""

from app.services.ai_analysis.base import AnalysisBackend
from app.services.ai_analysis.gemini_provider import GeminiAnalysisBackend
from app.services.ai_analysis.mock_provider import MockAnalysisBackend
from app.services.ai_analysis.service import IssueImageAnalysisService
from app.core.settings import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def build_backend() -> AnalysisBackend:
    """
    Pick the backend for this process.

    Gemini is used whenever AI is enabled, even without an API key: the
    missing key then surfaces per request and takes the fallback path.
    """
    if not settings.AI_ENABLED:
        logger.info("⚠️ AI is disabled globally (AI_ENABLED=false), using mock backend")
        return MockAnalysisBackend()
    return GeminiAnalysisBackend()


# Global service instance (singleton)
_service: Optional[IssueImageAnalysisService] = None


def get_analysis_service() -> IssueImageAnalysisService:
    """
    Get the process-wide analysis service.

    Used as a FastAPI dependency; tests override it.
    """
    global _service
    if _service is None:
        _service = IssueImageAnalysisService(
            build_backend(),
            retry_default_delay=settings.RETRY_DEFAULT_DELAY_SECONDS,
            retry_max_delay=settings.RETRY_MAX_DELAY_SECONDS,
            title_max_words=settings.TITLE_MAX_WORDS,
        )
    return _service


def reset_analysis_service() -> None:
    """Drop the cached service so the next call rebuilds it from settings."""
    global _service
    _service = None
