"""
Pydantic models for issue-image analysis requests and results.

Three result shapes exist side by side:
- IssueImageAnalysis: the rich analysis contract (5 categories)
- IssueFormFields: the form auto-fill contract (UI vocabulary)
- StrictIssueAnalysis: derived locally from the rich contract (8 categories)

Each result model is the validation boundary for backend output: a value
outside the enumerations, a missing field or an out-of-bounds length raises
a ValidationError. Nothing is coerced.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator


DEFAULT_MIME_TYPE = "image/jpeg"
# Browsers send these when they cannot tell what the file is
GENERIC_MIME_TYPES = {"", "application/octet-stream"}


class DetectedType(str, Enum):
    """Categories of the rich analysis contract."""
    ROAD = "Road"
    GARBAGE = "Garbage"
    STREETLIGHT = "Streetlight"
    PARK = "Park"
    OTHER = "Other"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class FormIssueType(str, Enum):
    """Issue types understood by the report form auto-fill."""
    POTHOLE = "pothole"
    GARBAGE = "garbage"
    STREETLIGHT = "streetlight"
    WATER_LEAKAGE = "water leakage"
    ROAD_DAMAGE = "road damage"
    OTHER = "other"


class StrictIssueType(str, Enum):
    """Issue types of the strict form output."""
    ROAD_DAMAGE = "Road Damage"
    GARBAGE = "Garbage"
    WATER_LOGGING = "Water Logging"
    STREET_LIGHT_ISSUE = "Street Light Issue"
    DRAINAGE_PROBLEM = "Drainage Problem"
    TRAFFIC_SIGNAL_ISSUE = "Traffic Signal Issue"
    PUBLIC_PROPERTY_DAMAGE = "Public Property Damage"
    OTHER = "Other"


def _reject_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, AfterValidator(_reject_blank)]


class AnalysisRequest(BaseModel):
    """
    A single image submitted for analysis.
    Created per request and discarded after the response is sent.
    """
    image_data: bytes = Field(..., description="Raw image bytes")
    mime_type: str = Field(DEFAULT_MIME_TYPE, description="Image MIME type")
    description: Optional[str] = Field(None, description="Optional citizen-provided context")

    @field_validator("image_data")
    @classmethod
    def image_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("image data must not be empty")
        return value

    @field_validator("mime_type", mode="before")
    @classmethod
    def default_mime_type(cls, value: Optional[str]) -> str:
        mime = (value or "").split(";")[0].strip().lower()
        if mime in GENERIC_MIME_TYPES:
            return DEFAULT_MIME_TYPE
        if not mime.startswith("image/"):
            raise ValueError(f"unsupported image type: {mime}")
        return mime

    @field_validator("description", mode="before")
    @classmethod
    def empty_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


class IssueImageAnalysis(BaseModel):
    """Rich analysis of an issue photo."""
    detected_type: DetectedType = Field(..., alias="detectedType")
    suggested_title: NonBlankStr = Field(..., alias="suggestedTitle", min_length=1, max_length=50)
    suggested_description: NonBlankStr = Field(..., alias="suggestedDescription", min_length=1, max_length=500)
    suggested_priority: Priority = Field(..., alias="suggestedPriority")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "detectedType": "Road",
                "suggestedTitle": "Pothole near crossing",
                "suggestedDescription": "A deep pothole with exposed rebar sits in the lane next to the pedestrian crossing.",
                "suggestedPriority": "High",
            }
        }


class IssueFormFields(BaseModel):
    """Fields used to auto-fill the issue report form."""
    issue_type: FormIssueType = Field(..., alias="issueType")
    priority: Priority
    title: NonBlankStr = Field(..., min_length=6, max_length=50)
    description: NonBlankStr = Field(..., min_length=20, max_length=500)

    class Config:
        populate_by_name = True


class StrictIssueAnalysis(BaseModel):
    """Strict form output derived from the rich analysis."""
    issue_type: StrictIssueType = Field(..., alias="issueType")
    priority: Priority
    title: NonBlankStr = Field(..., min_length=6, max_length=50)
    description: NonBlankStr = Field(..., min_length=20, max_length=500)

    class Config:
        populate_by_name = True


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str
