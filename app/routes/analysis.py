"""
Issue analysis endpoints - multipart photo upload, AI-suggested report fields.

All error bodies are {"error": "<message>"}:
- 400 for malformed submissions (not multipart, no image file, empty/non-image file)
- 500 for analysis failures that were not recovered by a fallback
"""

import logging
from typing import Awaitable, Callable, Union

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from app.models.analysis import (
    AnalysisRequest,
    ErrorResponse,
    IssueFormFields,
    IssueImageAnalysis,
    StrictIssueAnalysis,
)
from app.services.ai_analysis.registry import get_analysis_service
from app.services.ai_analysis.service import IssueImageAnalysisService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze-issue", tags=["Analysis"])

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def read_analysis_request(request: Request) -> Union[AnalysisRequest, JSONResponse]:
    """
    Parse a multipart submission into an AnalysisRequest.

    Returns a 400 JSONResponse instead when the submission is malformed.
    """
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        return error_response(status.HTTP_400_BAD_REQUEST, "Expected multipart/form-data")

    try:
        form = await request.form()
    except StarletteHTTPException as e:
        return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid multipart body: {e.detail}")
    except MultiPartException as e:
        return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid multipart body: {e.message}")
    image = form.get("image")
    if not isinstance(image, UploadFile):
        return error_response(status.HTTP_400_BAD_REQUEST, "Image file is required")

    description = form.get("description")
    if not isinstance(description, str):
        description = None

    data = await image.read()
    try:
        return AnalysisRequest(
            image_data=data,
            mime_type=image.content_type,
            description=description,
        )
    except ValidationError as e:
        message = "; ".join(err["msg"] for err in e.errors())
        return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid image upload: {message}")


async def run_analysis(
    request: Request,
    analyze: Callable[[AnalysisRequest], Awaitable[BaseModel]],
    label: str
) -> JSONResponse:
    parsed = await read_analysis_request(request)
    if isinstance(parsed, JSONResponse):
        return parsed

    try:
        logger.info(
            f"📷 POST {request.url.path} - {label}: {len(parsed.image_data)} bytes, "
            f"{parsed.mime_type}, description={'yes' if parsed.description else 'no'}"
        )
        result = await analyze(parsed)
    except Exception as e:
        logger.error(f"❌ POST {request.url.path} - {label} failed: {str(e)}", exc_info=True)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or e.__class__.__name__)

    return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump(by_alias=True, mode="json"))


@router.post("", response_model=IssueFormFields, responses=ERROR_RESPONSES)
async def analyze_issue(
    request: Request,
    service: IssueImageAnalysisService = Depends(get_analysis_service)
):
    """
    Suggest report form fields for an uploaded issue photo.

    Multipart fields: `image` (file, required), `description` (text, optional).
    """
    return await run_analysis(request, service.analyze_issue_image_form_fields, "form auto-fill")


@router.post("/strict", response_model=StrictIssueAnalysis, responses=ERROR_RESPONSES)
async def analyze_issue_strict(
    request: Request,
    service: IssueImageAnalysisService = Depends(get_analysis_service)
):
    """
    Strict form output. Backend failures never produce an error here;
    the worst case is a low-priority "resubmission requested" result.
    """
    return await run_analysis(request, service.analyze_issue_image_strict, "strict analysis")


@router.post("/rich", response_model=IssueImageAnalysis, responses=ERROR_RESPONSES)
async def analyze_issue_rich(
    request: Request,
    service: IssueImageAnalysisService = Depends(get_analysis_service)
):
    """Rich analysis (category, title, detailed description, priority)."""
    return await run_analysis(request, service.analyze_issue_image, "rich analysis")
