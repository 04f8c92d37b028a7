"""Resume API router.

Upload, list, get, delete and statistics endpoints, plus the reserved
surface (update, bulk upload, search, reanalyze, export) that answers 501.
Failures are raised as typed errors and turned into responses by the
application's error handlers.
"""

import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from resume_analyzer.config import Settings
from resume_analyzer.dependencies import get_ai_client, get_app_settings, get_repository
from resume_analyzer.errors import ClientInputError, InvalidResumeId, InvalidUpload
from resume_analyzer.schemas.resume import (
    DeletedResume,
    ResumeListResponse,
    ResumeRecord,
    ResumeStats,
    SuccessResponse,
)
from resume_analyzer.services.analyzer import analyze_resume
from resume_analyzer.services.gemini import GeminiClient
from resume_analyzer.services.repository import ResumeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resumes", tags=["resumes"])

UPLOAD_FIELD = "resume"
PDF_MIME_TYPE = "application/pdf"
MAX_FORM_FIELDS = 10
EXPORT_FORMATS = ("csv", "json", "xlsx")

_POSITIVE_INT = re.compile(r"[0-9]+")


def parse_resume_id(resume_id: str) -> int:
    """Validate a path id; it must be a positive integer.

    Raises:
        InvalidResumeId: Not a positive integer
    """
    if not _POSITIVE_INT.fullmatch(resume_id) or int(resume_id) <= 0:
        raise InvalidResumeId()
    return int(resume_id)


def _not_implemented(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        content={"success": False, "message": message},
    )


async def read_upload(request: Request, max_bytes: int) -> tuple[str, bytes]:
    """Read exactly one PDF under the ``resume`` form field.

    Returns:
        Tuple of (original file name, file bytes)

    Raises:
        InvalidUpload: Missing, extra, wrong-type, empty or oversized file
    """
    form = await request.form(max_fields=MAX_FORM_FIELDS)
    try:
        files = [
            (field, value)
            for field, value in form.multi_items()
            if isinstance(value, UploadFile)
        ]
        if any(field != UPLOAD_FIELD for field, _ in files):
            raise InvalidUpload(
                f'Unexpected field name. Please use "{UPLOAD_FIELD}" as the field name.'
            )
        if not files:
            raise InvalidUpload("No file uploaded. Please select a PDF file.")
        if len(files) > 1:
            raise InvalidUpload("Too many files. Please upload one file at a time.")

        upload = files[0][1]
        if upload.content_type != PDF_MIME_TYPE:
            raise InvalidUpload("Only PDF files are allowed.")

        data = await upload.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise InvalidUpload(
                f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
            )
        if not data:
            raise InvalidUpload("Empty file uploaded. Please select a valid PDF file.")

        file_name = upload.filename or "resume.pdf"
        logger.info(f"File: {file_name} ({len(data)} bytes)")
        return file_name, data
    finally:
        await form.close()


@router.post(
    "/upload",
    response_model=SuccessResponse[ResumeRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Upload and analyze a resume",
)
async def upload_resume(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    client: GeminiClient = Depends(get_ai_client),
    repository: ResumeRepository = Depends(get_repository),
) -> SuccessResponse[ResumeRecord]:
    """Analyze an uploaded PDF and store the result.

    Raises:
        InvalidUpload / ExtractionError: 400
        AITimeout: 408
        AIRateLimited: 429
        AIUnavailable / MalformedAIResponse / StorageUnavailable: 503
    """
    file_name, data = await read_upload(request, settings.max_upload_bytes)
    logger.info(f"Processing file: {file_name}")

    analysis = await analyze_resume(data, file_name, client)
    record = await repository.create(file_name, analysis)

    return SuccessResponse[ResumeRecord](
        message="Resume uploaded and analyzed successfully!",
        data=record,
    )


@router.get("", response_model=ResumeListResponse, summary="List all resumes")
async def list_resumes(
    repository: ResumeRepository = Depends(get_repository),
) -> ResumeListResponse:
    """Summary view of every stored resume, newest first."""
    summaries = await repository.list_summaries()
    return ResumeListResponse(
        message="Resumes retrieved successfully",
        data=summaries,
        count=len(summaries),
    )


@router.get(
    "/stats",
    response_model=SuccessResponse[ResumeStats],
    summary="Resume statistics",
)
async def get_resume_stats(
    repository: ResumeRepository = Depends(get_repository),
) -> SuccessResponse[ResumeStats]:
    stats = await repository.stats()
    return SuccessResponse[ResumeStats](
        message="Resume statistics retrieved successfully",
        data=stats,
    )


@router.get("/health", summary="Resume routes health")
async def resume_routes_health() -> dict:
    return {
        "success": True,
        "message": "Resume routes are healthy!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "routes": {
            "upload": "POST /upload",
            "getAll": "GET /",
            "getById": "GET /:id",
            "getStats": "GET /stats",
            "delete": "DELETE /:id",
        },
    }


@router.post("/bulk-upload", summary="Upload multiple resumes (reserved)")
async def bulk_upload() -> JSONResponse:
    return _not_implemented("Bulk upload feature coming soon!")


@router.get("/search/{query}", summary="Search resumes (reserved)")
async def search_resumes(query: str) -> JSONResponse:
    return _not_implemented("Resume search feature coming soon!")


@router.get("/export/{export_format}", summary="Export resumes (reserved)")
async def export_resumes(export_format: str) -> JSONResponse:
    if export_format.lower() not in EXPORT_FORMATS:
        raise ClientInputError(
            "Invalid export format. Supported formats: csv, json, xlsx"
        )
    return _not_implemented(f"Export to {export_format.upper()} feature coming soon!")


@router.get(
    "/{resume_id}",
    response_model=SuccessResponse[ResumeRecord],
    summary="Get a specific resume",
)
async def get_resume(
    resume_id: str,
    repository: ResumeRepository = Depends(get_repository),
) -> SuccessResponse[ResumeRecord]:
    """Get one full analysis record.

    Raises:
        InvalidResumeId: 400
        ResumeNotFound: 404
    """
    record = await repository.get(parse_resume_id(resume_id))
    return SuccessResponse[ResumeRecord](message="Resume retrieved successfully", data=record)


@router.put("/{resume_id}", summary="Update a resume (reserved)")
async def update_resume(resume_id: str) -> JSONResponse:
    parse_resume_id(resume_id)
    return _not_implemented("Resume update feature coming soon!")


@router.post("/{resume_id}/reanalyze", summary="Reanalyze a resume (reserved)")
async def reanalyze_resume(resume_id: str) -> JSONResponse:
    parse_resume_id(resume_id)
    return _not_implemented("Resume reanalysis feature coming soon!")


@router.delete(
    "/{resume_id}",
    response_model=SuccessResponse[DeletedResume],
    summary="Delete a resume",
)
async def delete_resume(
    resume_id: str,
    repository: ResumeRepository = Depends(get_repository),
) -> SuccessResponse[DeletedResume]:
    """Delete a resume by id.

    Raises:
        InvalidResumeId: 400
        ResumeNotFound: 404
    """
    deleted = await repository.delete(parse_resume_id(resume_id))
    return SuccessResponse[DeletedResume](
        message=f'Resume "{deleted.file_name}" deleted successfully',
        data=deleted,
    )
