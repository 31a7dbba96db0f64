"""
Error classification for generation backend failures.

Classification works on the raw error message text, which couples it to the
wording of a specific backend. The markers live on ErrorClassifier so that a
different backend can ship its own classifier without touching the retry and
fallback policy in the service.

Default markers (Gemini / Google AI):
- rate limited: "Too Many Requests", "Quota exceeded", "429", "RESOURCE_EXHAUSTED"
- credentials:  "FAILED_PRECONDITION", "API key", "Please pass in the API key"
"""

from enum import Enum
from typing import Iterable, Optional, Tuple
import logging
import re

from app.services.ai_analysis.base import MalformedOutputError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    CREDENTIAL_MISSING = "credential_missing"
    MALFORMED_OUTPUT = "malformed_output"
    UNEXPECTED = "unexpected"


RATE_LIMIT_MARKERS: Tuple[str, ...] = (
    "Too Many Requests",
    "Quota exceeded",
    "429",
    "RESOURCE_EXHAUSTED",
)

CREDENTIAL_MARKERS: Tuple[str, ...] = (
    "FAILED_PRECONDITION",
    "API key",
    "Please pass in the API key",
)

# "Please retry in 12.5s." and google.rpc RetryInfo "retry_delay { seconds: 12 }"
_RETRY_IN_PATTERN = re.compile(r"retry in ([0-9]+(?:\.[0-9]+)?)\s*s", re.IGNORECASE)
_RETRY_DELAY_BLOCK_PATTERN = re.compile(r"retry_delay\s*\{\s*seconds:\s*([0-9]+)", re.IGNORECASE)


def error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class ErrorClassifier:
    """Maps a backend exception to an ErrorKind by inspecting its message."""

    def __init__(
        self,
        rate_limit_markers: Iterable[str] = RATE_LIMIT_MARKERS,
        credential_markers: Iterable[str] = CREDENTIAL_MARKERS
    ):
        self.rate_limit_markers = tuple(rate_limit_markers)
        self.credential_markers = tuple(credential_markers)

    def is_rate_limited(self, message: str) -> bool:
        return any(marker in message for marker in self.rate_limit_markers)

    def is_credential_missing(self, message: str) -> bool:
        return any(marker in message for marker in self.credential_markers)

    def classify(self, exc: BaseException) -> ErrorKind:
        if isinstance(exc, MalformedOutputError):
            return ErrorKind.MALFORMED_OUTPUT

        message = error_message(exc)
        # Quota errors can mention the key too; rate limiting wins
        if self.is_rate_limited(message):
            return ErrorKind.RATE_LIMITED
        if self.is_credential_missing(message):
            return ErrorKind.CREDENTIAL_MISSING
        return ErrorKind.UNEXPECTED


DEFAULT_CLASSIFIER = ErrorClassifier()


def parse_retry_delay(message: str) -> Optional[float]:
    """
    Extract a server-suggested retry delay (seconds) from an error message.

    Returns:
        Delay in seconds, or None if the message carries no hint
    """
    match = _RETRY_IN_PATTERN.search(message) or _RETRY_DELAY_BLOCK_PATTERN.search(message)
    if not match:
        return None
    return float(match.group(1))


def compute_retry_delay(message: str, default: float, ceiling: float) -> float:
    """Suggested delay (or the default), clamped to [0, ceiling]."""
    hint = parse_retry_delay(message)
    delay = default if hint is None else hint
    return max(0.0, min(ceiling, delay))
