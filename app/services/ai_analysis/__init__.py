"""
AI Issue-Image Analysis.

Analyzes a photo of a civic issue (plus optional citizen notes) with a
multimodal model and returns structured report fields.

Key principles:
- Output is validated against a contract before use; nothing is coerced
- Known failures (rate limiting, missing credentials) never reach the citizen
- Unknown failures are not masked, except by the strict entry point
"""

from app.services.ai_analysis.base import AnalysisBackend, AnalysisBackendError, MalformedOutputError
from app.services.ai_analysis.classifier import ErrorClassifier, ErrorKind
from app.services.ai_analysis.gemini_provider import GeminiAnalysisBackend
from app.services.ai_analysis.mock_provider import MockAnalysisBackend
from app.services.ai_analysis.registry import get_analysis_service
from app.services.ai_analysis.service import IssueImageAnalysisService

__all__ = [
    "AnalysisBackend",
    "AnalysisBackendError",
    "MalformedOutputError",
    "ErrorClassifier",
    "ErrorKind",
    "GeminiAnalysisBackend",
    "MockAnalysisBackend",
    "IssueImageAnalysisService",
    "get_analysis_service",
]
