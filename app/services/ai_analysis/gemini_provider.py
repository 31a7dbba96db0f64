"""
Gemini Analysis Backend - multimodal generation via Google Gemini.

Sends the contract instructions, the inline image and the contract's
response schema, and returns the parsed JSON output.

A missing API key does not fail at construction; it surfaces on the first
generate() call as an error carrying the credential marker, so only
requests that actually need the model take the fallback path.
"""

from app.services.ai_analysis.base import AnalysisBackend, AnalysisBackendError, MalformedOutputError
from app.services.ai_analysis.contracts import AnalysisContract, build_prompt
from app.models.analysis import AnalysisRequest
from app.core.settings import settings
from typing import Any, Dict, Optional
import google.generativeai as genai
import logging
import json

logger = logging.getLogger(__name__)


MISSING_KEY_MESSAGE = (
    "FAILED_PRECONDITION: Please pass in the API key or set the GOOGLE_GENAI_API_KEY, "
    "GEMINI_API_KEY or GOOGLE_API_KEY environment variable."
)


class GeminiAnalysisBackend(AnalysisBackend):
    """
    Google Gemini backend for issue-image analysis.

    Reads the API key from GOOGLE_GENAI_API_KEY, GEMINI_API_KEY or GOOGLE_API_KEY.
    """

    MODEL_VERSION = "v1beta"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None
    ):
        self.api_key = api_key if api_key is not None else settings.resolved_api_key
        self.model_name = model_name or settings.GEMINI_MODEL
        self.timeout_seconds = timeout_seconds or settings.AI_TIMEOUT_SECONDS
        self.enabled = bool(self.api_key and self.api_key.strip())

        if self.enabled:
            genai.configure(api_key=self.api_key)
            logger.info(f"✅ Gemini Analysis Backend initialized: {self.model_name}")
        else:
            logger.warning("⚠️ Gemini Analysis Backend has no API key; analysis will use fallbacks")

    def is_enabled(self) -> bool:
        """Check if backend has an API key."""
        return self.enabled

    def get_model_info(self) -> Dict[str, str]:
        """Get model information."""
        return {
            "name": self.model_name,
            "version": self.MODEL_VERSION
        }

    def get_timeout_seconds(self) -> float:
        """Get timeout for API calls."""
        return self.timeout_seconds

    async def generate(
        self,
        contract: AnalysisContract,
        request: AnalysisRequest
    ) -> Optional[Dict[str, Any]]:
        """
        Generate structured output for one contract.

        Client library errors are not wrapped; their message text
        (e.g. "429 Quota exceeded ...") is what gets classified.
        """
        if not self.enabled:
            raise AnalysisBackendError(MISSING_KEY_MESSAGE)

        model = genai.GenerativeModel(
            self.model_name,
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=contract.response_schema,
            ),
        )
        contents = build_prompt(contract, request) + [
            {"mime_type": request.mime_type, "data": request.image_data}
        ]

        logger.debug(f"Calling Gemini ({self.model_name}) for contract '{contract.name}'")
        response = await model.generate_content_async(
            contents,
            request_options={"timeout": self.get_timeout_seconds()}
        )

        return self._parse_response(response)

    def _parse_response(self, response) -> Optional[Dict[str, Any]]:
        """
        Parse the JSON body of a Gemini response.

        Returns None when the model produced no text (blocked or empty
        candidates); raises MalformedOutputError when the text is not JSON.
        """
        if not response.candidates or not response.candidates[0].content.parts:
            logger.warning("Gemini response has no candidates or parts")
            return None

        text = "".join(
            part.text for part in response.candidates[0].content.parts if getattr(part, "text", "")
        ).strip()
        if not text:
            return None

        # Model might still wrap JSON in markdown code blocks
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0].strip()
        elif text.startswith("```"):
            text = text.split("```")[1].split("```")[0].strip()

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"Response text: {text}")
            raise MalformedOutputError(f"Gemini returned invalid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise MalformedOutputError("Gemini returned JSON that is not an object")
        return parsed
