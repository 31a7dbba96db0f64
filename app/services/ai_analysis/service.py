"""
Issue-Image Analysis Service.

One analyze capability (backend + contract validation) behind three entry
points with different failure surfaces:

- analyze_issue_image (rich contract)
    rate limited / malformed output -> wait (bounded), retry once, then fallback
    credentials missing             -> fallback immediately, no retry
    anything else                   -> re-raised unchanged
- analyze_issue_image_form_fields (auto-fill contract)
    rate limited / credentials      -> fallback, no retry
    anything else                   -> re-raised unchanged
- analyze_issue_image_strict (derived from the rich flow)
    NEVER raises; any failure yields the resubmission placeholder

The strict entry point is intentionally more forgiving than the rich flow
it wraps: the citizen-facing form must never see an error, while callers of
the rich flow must still see genuine defects.

Priority is stated to the model as a rubric but not re-checked here.
"""

from typing import Awaitable, Callable
import asyncio
import logging

from pydantic import BaseModel, ValidationError

from app.models.analysis import (
    AnalysisRequest,
    IssueFormFields,
    IssueImageAnalysis,
    StrictIssueAnalysis,
)
from app.services.ai_analysis.base import AnalysisBackend, MalformedOutputError
from app.services.ai_analysis.classifier import (
    DEFAULT_CLASSIFIER,
    ErrorClassifier,
    ErrorKind,
    compute_retry_delay,
    error_message,
)
from app.services.ai_analysis.contracts import (
    AnalysisContract,
    CREDENTIAL_FALLBACK,
    FORM_FIELDS_CONTRACT,
    FORM_FIELDS_FALLBACK,
    RESUBMISSION_PLACEHOLDER,
    RETRY_FALLBACK,
    RICH_CONTRACT,
)
from app.services.ai_analysis.normalization import (
    clamp_text,
    clamp_title_words,
    map_detected_type_to_strict,
)

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_CHARS = 500


class IssueImageAnalysisService:
    """
    Analyzes issue photos with a generation backend.

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(
        self,
        backend: AnalysisBackend,
        classifier: ErrorClassifier = DEFAULT_CLASSIFIER,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        retry_default_delay: float = 1.0,
        retry_max_delay: float = 2.0,
        title_max_words: int = 10
    ):
        self.backend = backend
        self.classifier = classifier
        self._sleep = sleep
        self.retry_default_delay = retry_default_delay
        self.retry_max_delay = retry_max_delay
        self.title_max_words = title_max_words

    async def _invoke(self, contract: AnalysisContract, request: AnalysisRequest) -> BaseModel:
        """
        Call the backend once and validate its output against the contract.

        Raises:
            MalformedOutputError: no output, or output that fails validation
            Exception: backend errors, unchanged
        """
        output = await self.backend.generate(contract, request)
        if output is None:
            raise MalformedOutputError(f"AI analysis failed to produce an output ({contract.name}).")
        try:
            return contract.output_model.model_validate(output)
        except ValidationError as e:
            raise MalformedOutputError(
                f"AI output does not match the {contract.name} contract: {e.error_count()} error(s)"
            ) from e

    async def analyze_issue_image(self, request: AnalysisRequest) -> IssueImageAnalysis:
        """
        Rich analysis with retry-once-then-fallback.

        Raises:
            Exception: unclassified backend errors, re-raised unchanged
        """
        try:
            return await self._invoke(RICH_CONTRACT, request)
        except Exception as e:
            kind = self.classifier.classify(e)

            if kind in (ErrorKind.RATE_LIMITED, ErrorKind.MALFORMED_OUTPUT):
                delay = compute_retry_delay(
                    error_message(e),
                    default=self.retry_default_delay,
                    ceiling=self.retry_max_delay,
                )
                logger.warning(f"⚠️ Analysis failed ({kind.value}). Retrying once after {delay:.2f}s...")
                await self._sleep(delay)
                return await self._retry_or_fallback(request)

            if kind is ErrorKind.CREDENTIAL_MISSING:
                logger.warning("⚠️ GenAI key missing or unavailable. Returning safe fallback analysis.")
                return CREDENTIAL_FALLBACK.model_copy()

            logger.error(f"❌ Unexpected analysis error: {error_message(e)}")
            raise

    async def _retry_or_fallback(self, request: AnalysisRequest) -> IssueImageAnalysis:
        try:
            return await self._invoke(RICH_CONTRACT, request)
        except Exception as retry_error:
            logger.warning(f"⚠️ Retry failed ({error_message(retry_error)}); returning safe fallback analysis.")
            return RETRY_FALLBACK.model_copy()

    async def analyze_issue_image_form_fields(self, request: AnalysisRequest) -> IssueFormFields:
        """
        Form auto-fill analysis. Falls back only on rate limiting or
        missing credentials; everything else propagates.
        """
        try:
            return await self._invoke(FORM_FIELDS_CONTRACT, request)
        except Exception as e:
            message = error_message(e)
            if self.classifier.is_rate_limited(message) or self.classifier.is_credential_missing(message):
                logger.warning(f"⚠️ Form auto-fill unavailable ({message}); returning safe defaults.")
                return FORM_FIELDS_FALLBACK.model_copy()
            raise

    async def analyze_issue_image_strict(self, request: AnalysisRequest) -> StrictIssueAnalysis:
        """
        Strict form output derived from the rich analysis. Never raises.
        """
        try:
            result = await self.analyze_issue_image(request)
            return StrictIssueAnalysis(
                issue_type=map_detected_type_to_strict(result.detected_type),
                priority=result.suggested_priority,
                title=clamp_title_words(result.suggested_title, self.title_max_words),
                description=clamp_text(result.suggested_description, DESCRIPTION_MAX_CHARS),
            )
        except Exception as e:
            logger.warning(f"⚠️ Strict analysis failed ({error_message(e)}); requesting resubmission.")
            return RESUBMISSION_PLACEHOLDER.model_copy()

    def describe_backend(self) -> dict:
        info = dict(self.backend.get_model_info())
        info["enabled"] = self.backend.is_enabled()
        return info
