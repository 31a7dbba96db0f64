"""
Mock Analysis Backend - used when AI is disabled.

Provides rule-based analysis from the citizen's description without
external AI calls. The image itself is not inspected.
Always available and never fails.
"""

from app.services.ai_analysis.base import AnalysisBackend
from app.services.ai_analysis.contracts import AnalysisContract, FORM_FIELDS_CONTRACT
from app.models.analysis import AnalysisRequest
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


# (rich category, form issue type, keywords), first match wins
CATEGORY_RULES = [
    ("Road", "pothole", ["pothole", "crater"]),
    ("Road", "road damage", ["road", "crack", "asphalt", "pavement", "rebar", "crossing"]),
    ("Garbage", "garbage", ["garbage", "waste", "trash", "litter", "dump", "overflowing"]),
    ("Streetlight", "streetlight", ["streetlight", "street light", "lamp", "light pole", "dark"]),
    ("Other", "water leakage", ["leak", "water", "pipe", "burst"]),
    ("Park", "other", ["park", "bench", "playground", "swing", "fence"]),
]

HIGH_PRIORITY_WORDS = ["dangerous", "urgent", "accident", "exposed", "open manhole", "fallen", "blocking", "sparking", "deep"]
LOW_PRIORITY_WORDS = ["minor", "cosmetic", "faded", "small", "graffiti"]

TITLES = {
    "Road": "Damaged road surface reported",
    "Garbage": "Garbage accumulation reported",
    "Streetlight": "Street light fault reported",
    "Park": "Park facility damage reported",
    "Other": "Civic issue reported",
}

FORM_TITLES = {
    "pothole": "Pothole on road surface",
    "road damage": "Damaged road surface reported",
    "garbage": "Garbage accumulation reported",
    "streetlight": "Street light not working",
    "water leakage": "Water leakage reported",
    "other": "Civic issue reported",
}


class MockAnalysisBackend(AnalysisBackend):
    """
    Mock backend using keyword matching on the description.

    This is the backend when AI is disabled in config.
    Produces output that satisfies both contracts.
    """

    MODEL_NAME = "mock-rules-v1"
    MODEL_VERSION = "1.0.0"
    TIMEOUT_SECONDS = 0.1  # Instant (no network call)

    def __init__(self):
        logger.info(f"✅ Mock Analysis Backend initialized: {self.MODEL_NAME}")

    def is_enabled(self) -> bool:
        """Mock backend is always enabled."""
        return True

    def get_model_info(self) -> Dict[str, str]:
        """Get model information."""
        return {
            "name": self.MODEL_NAME,
            "version": self.MODEL_VERSION
        }

    def get_timeout_seconds(self) -> float:
        """Get timeout (instant for mock)."""
        return self.TIMEOUT_SECONDS

    async def generate(
        self,
        contract: AnalysisContract,
        request: AnalysisRequest
    ) -> Optional[Dict[str, Any]]:
        text = (request.description or "").lower()

        detected_type, form_type = "Other", "other"
        for rich_category, form_category, words in CATEGORY_RULES:
            if any(word in text for word in words):
                detected_type, form_type = rich_category, form_category
                break

        priority = "Medium"
        if any(word in text for word in HIGH_PRIORITY_WORDS):
            priority = "High"
        elif any(word in text for word in LOW_PRIORITY_WORDS):
            priority = "Low"

        description = self._describe(request.description, priority)

        if contract is FORM_FIELDS_CONTRACT:
            return {
                "issueType": form_type,
                "priority": priority,
                "title": FORM_TITLES[form_type],
                "description": description,
            }

        return {
            "detectedType": detected_type,
            "suggestedTitle": TITLES[detected_type],
            "suggestedDescription": description,
            "suggestedPriority": priority,
        }

    def _describe(self, citizen_text: Optional[str], priority: str) -> str:
        """Neutral description built from the citizen's own words."""
        observed = (citizen_text or "").strip().rstrip(".")
        if len(observed) > 200:
            observed = observed[:197].rsplit(" ", 1)[0] + "..."
        if observed:
            lead = f"Citizen report: {observed}."
        else:
            lead = "A civic issue was reported with a photo and no additional description."
        return (
            f"{lead} Automated image analysis is disabled, so this summary is based on the "
            f"reporter's notes only (estimated priority: {priority}). Please inspect the site "
            f"and confirm severity before scheduling repair."
        )
