"""
Normalization of rich analysis output into the strict form vocabulary.
"""

from typing import Optional, Union

from app.models.analysis import DetectedType, StrictIssueType


# Park-related structural issues count as public property damage
DETECTED_TO_STRICT = {
    DetectedType.ROAD: StrictIssueType.ROAD_DAMAGE,
    DetectedType.GARBAGE: StrictIssueType.GARBAGE,
    DetectedType.STREETLIGHT: StrictIssueType.STREET_LIGHT_ISSUE,
    DetectedType.PARK: StrictIssueType.PUBLIC_PROPERTY_DAMAGE,
    DetectedType.OTHER: StrictIssueType.OTHER,
}


def map_detected_type_to_strict(
    detected: Optional[Union[DetectedType, str]]
) -> StrictIssueType:
    """Total mapping; unknown or missing categories map to Other."""
    try:
        key = DetectedType(detected)
    except ValueError:
        return StrictIssueType.OTHER
    return DETECTED_TO_STRICT.get(key, StrictIssueType.OTHER)


def clamp_title_words(title: str, max_words: int = 10) -> str:
    """Keep at most max_words whitespace-delimited words. Never splits a word."""
    words = title.split()
    if len(words) <= max_words:
        return title.strip()
    return " ".join(words[:max_words])


def clamp_text(text: str, max_chars: int) -> str:
    """Strip and cut at the last word boundary that fits within max_chars."""
    text = text.strip()
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars]
    if not text[max_chars].isspace() and " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip()
