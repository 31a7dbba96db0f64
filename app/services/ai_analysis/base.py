"""
Analysis Backend Base Interface.

Defines the contract for multimodal generation backends.
All backends must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
import logging

from app.models.analysis import AnalysisRequest

if TYPE_CHECKING:
    from app.services.ai_analysis.contracts import AnalysisContract

logger = logging.getLogger(__name__)


class AnalysisBackendError(Exception):
    """
    Raised by a backend when generation fails.

    The message text is what the error classifier inspects, so backends
    should keep the upstream error text intact.
    """


class MalformedOutputError(AnalysisBackendError):
    """The backend answered but produced no usable structured output."""


class AnalysisBackend(ABC):
    """
    Abstract base class for generation backends.

    Unlike report interpretation, backends here DO raise on failure.
    Recovery (retry, fallback, propagation) is decided by the service
    based on how the error is classified.
    """

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if this backend is configured and ready.

        Returns:
            True if the backend can be called, False otherwise
        """
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, str]:
        """
        Get model information (name, version).

        Returns:
            Dict with 'name' and 'version' keys
        """
        pass

    @abstractmethod
    def get_timeout_seconds(self) -> float:
        """Timeout for a single generation call (in seconds)."""
        pass

    @abstractmethod
    async def generate(
        self,
        contract: "AnalysisContract",
        request: AnalysisRequest
    ) -> Optional[Dict[str, Any]]:
        """
        Run one generation against a contract.

        This method MUST:
        - Send the contract's instructions, response schema and the image
        - Return the raw structured output (not yet validated)
        - Return None if the model produced no output at all
        - Raise (AnalysisBackendError or the client library's own error)
          on failure, keeping the upstream message text

        Args:
            contract: The output contract to generate against
            request: The image and optional description

        Returns:
            Parsed output dict, or None
        """
        pass
