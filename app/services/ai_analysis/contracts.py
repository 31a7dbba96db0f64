"""
Output contracts for issue-image analysis.

A contract ties together everything one kind of analysis needs:
- the pydantic model that validates the backend output
- the response schema handed to the backend to constrain generation
- the instruction text (prompt)

The rich and form auto-fill contracts are kept independent on purpose:
they serve different consumers with different vocabularies and bounds.

Also holds the static, schema-valid fallback results used by the service.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Type

from pydantic import BaseModel

from app.models.analysis import (
    AnalysisRequest,
    DetectedType,
    FormIssueType,
    IssueFormFields,
    IssueImageAnalysis,
    Priority,
    StrictIssueAnalysis,
    StrictIssueType,
)


def _joined(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


def _string_enum(enum_cls) -> Dict[str, Any]:
    return {"type": "STRING", "format": "enum", "enum": [member.value for member in enum_cls]}


PRIORITY_RUBRIC = """Priority rules:
- High → dangerous or urgent (safety hazards, obstructions, accidents, open manholes, fallen poles)
- Medium → inconvenience but not dangerous (garbage, potholes, broken lights)
- Low → minor or cosmetic issues"""


RICH_INSTRUCTIONS = f"""Analyze the provided image and optional description of a potential civic issue.

Follow these rules strictly. Use only what is visible in the image and the optional text; do not invent details:
1. Category: choose exactly one of {_joined(DetectedType)}. Do not invent new categories; use Other if none fits.
2. Title: concise, at most 50 characters.
3. Description: a detailed summary (target 200-400 characters, never more than 500) that clearly states:
   - what the issue appears to be (objective observation),
   - apparent severity or risks (e.g. safety hazard, obstruction, sanitation),
   - likely impact on citizens (traffic flow, hygiene, access, visibility),
   - one short, actionable recommendation (e.g. barricade area, schedule repair, increase collection).
   Keep language factual and avoid speculation beyond the image.
4. Priority: one of {_joined(Priority)} based on visible severity.

{PRIORITY_RUBRIC}

Never return empty strings, null or placeholder values. If unsure, use category Other and priority Medium."""


FORM_FIELDS_INSTRUCTIONS = f"""You are an AI assistant for FixIt, a civic issue reporting app.
Your job is to analyze an uploaded image of a civic issue and automatically fill issue reporting form fields.

IMPORTANT RULES:
- Never return empty strings.
- Never omit any field.
- If unsure, choose a reasonable default (issue type "other", priority "Medium").
- Do NOT use placeholders like "", "unknown", or null.

Based ONLY on what is clearly visible in the image:
1. Identify the issue type: exactly one of {_joined(FormIssueType)}.
2. Decide priority ({_joined(Priority)}).
3. Generate a short, clear title (minimum 3 words, at most 50 characters).
4. Write a brief description suitable for government authorities (2-3 sentences).

{PRIORITY_RUBRIC}

Respond ONLY with JSON using the fields issueType, priority, title and description."""


@dataclass(frozen=True)
class AnalysisContract:
    """One output contract: validation model, backend schema, instructions."""
    name: str
    output_model: Type[BaseModel]
    response_schema: Dict[str, Any]
    instructions: str
    context_label: str


RICH_CONTRACT = AnalysisContract(
    name="analyze_issue_image",
    output_model=IssueImageAnalysis,
    response_schema={
        "type": "OBJECT",
        "properties": {
            "detectedType": _string_enum(DetectedType),
            "suggestedTitle": {"type": "STRING"},
            "suggestedDescription": {"type": "STRING"},
            "suggestedPriority": _string_enum(Priority),
        },
        "required": ["detectedType", "suggestedTitle", "suggestedDescription", "suggestedPriority"],
    },
    instructions=RICH_INSTRUCTIONS,
    context_label="Description Context",
)

FORM_FIELDS_CONTRACT = AnalysisContract(
    name="autofill_issue_form",
    output_model=IssueFormFields,
    response_schema={
        "type": "OBJECT",
        "properties": {
            "issueType": _string_enum(FormIssueType),
            "priority": _string_enum(Priority),
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
        },
        "required": ["issueType", "priority", "title", "description"],
    },
    instructions=FORM_FIELDS_INSTRUCTIONS,
    context_label="User notes",
)


def build_prompt(contract: AnalysisContract, request: AnalysisRequest) -> List[str]:
    """
    Build the text parts of a generation request.

    The image itself is sent by the backend as an inline part carrying
    its mime type; only instructions and optional context are text.
    """
    parts = [contract.instructions]
    if request.description:
        parts.append(f"{contract.context_label}: {request.description}")
    return parts


# Static results returned instead of failing the request

RETRY_FALLBACK = IssueImageAnalysis(
    detected_type=DetectedType.OTHER,
    suggested_title="Issue Report",
    suggested_description="Preliminary report created. Add details and photos to improve analysis.",
    suggested_priority=Priority.MEDIUM,
)

CREDENTIAL_FALLBACK = IssueImageAnalysis(
    detected_type=DetectedType.OTHER,
    suggested_title="Issue Report",
    suggested_description=(
        "Preliminary report created automatically. The photo appears to show a civic maintenance "
        "issue requiring inspection. Please add specifics such as exact location, size/severity, "
        "any safety risks (e.g., sharp edges, trip or vehicle hazard), and how it affects traffic, "
        "hygiene, or visibility so authorities can prioritize an appropriate response."
    ),
    suggested_priority=Priority.MEDIUM,
)

FORM_FIELDS_FALLBACK = IssueFormFields(
    issue_type=FormIssueType.OTHER,
    priority=Priority.MEDIUM,
    title="Issue report",
    description=(
        "A civic issue is reported with limited detail. Please review the image and add "
        "specifics such as exact location and severity to prioritize action."
    ),
)

RESUBMISSION_PLACEHOLDER = StrictIssueAnalysis(
    issue_type=StrictIssueType.OTHER,
    priority=Priority.LOW,
    title="Incorrect submission; resubmission requested",
    description=(
        "The submission does not clearly depict a civic infrastructure issue. No safety risk or "
        "obstruction is evident. Please resubmit with a clear photograph of the specific problem "
        "and location context so inspection and corrective action can proceed."
    ),
)
