"""Failure taxonomy and the single error-classification step.

Every layer (extraction, AI invocation, storage, upload validation) raises a
typed ``AppError`` subclass. ``classify`` is the only place that turns a raised
failure into the client-facing category, and the handlers registered by
``register_error_handlers`` are the only place that writes the error envelope.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from resume_analyzer.config import Settings

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went wrong! Please try again later."


class ErrorCategory(str, Enum):
    """Client-facing failure categories."""

    CLIENT_INPUT = "client_input"
    NOT_FOUND = "not_found"
    REQUEST_TIMEOUT = "request_timeout"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorCategory.CLIENT_INPUT: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.REQUEST_TIMEOUT: 408,
    ErrorCategory.RATE_LIMITED: 429,
    ErrorCategory.SERVICE_UNAVAILABLE: 503,
    ErrorCategory.INTERNAL: 500,
}


class AppError(Exception):
    """Base class for operational failures with a safe client message."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    default_message: str = GENERIC_MESSAGE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.category.status_code


# Category roots

class ClientInputError(AppError):
    category = ErrorCategory.CLIENT_INPUT
    default_message = "Invalid request."


class NotFoundError(AppError):
    category = ErrorCategory.NOT_FOUND
    default_message = "Resource not found."


class ServiceUnavailable(AppError):
    category = ErrorCategory.SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable. Please try again later."


class RequestTimeout(AppError):
    category = ErrorCategory.REQUEST_TIMEOUT
    default_message = "The request took too long. Please try again."


class RateLimited(AppError):
    category = ErrorCategory.RATE_LIMITED
    default_message = "Too many requests. Please wait a moment and try again."


# Request validation

class InvalidUpload(ClientInputError):
    default_message = "File upload failed."


class InvalidResumeId(ClientInputError):
    default_message = "Invalid resume ID. ID must be a positive number."


# Text extraction

class ExtractionError(ClientInputError):
    default_message = "PDF processing failed. Please try with a different file."


class EmptyDocument(ExtractionError):
    default_message = (
        "PDF appears to be empty or contains only images. "
        "Please upload a PDF with text content."
    )


class InsufficientContent(ExtractionError):
    default_message = (
        "PDF contains very little text content. "
        "Please ensure the PDF is a proper resume document."
    )


class CorruptOrEncrypted(ExtractionError):
    default_message = (
        "Unable to process PDF file. Please ensure it's a valid, non-encrypted PDF."
    )


class ExtractionFailed(ExtractionError):
    default_message = "PDF parsing failed. Please ensure the file is a valid PDF document."


# AI collaborator

class AIUnavailable(ServiceUnavailable):
    default_message = "AI analysis service is temporarily unavailable. Please try again later."


class AITimeout(RequestTimeout):
    default_message = "AI analysis is taking longer than expected. Please try again."


class AIRateLimited(RateLimited):
    pass


class MalformedAIResponse(ServiceUnavailable):
    default_message = "AI returned invalid JSON format. Please try again."


# Storage

class ResumeNotFound(NotFoundError):
    default_message = "Resume not found."


class ConstraintViolation(ClientInputError):
    default_message = "Data validation failed. Please check your input."


class DuplicateConflict(ClientInputError):
    default_message = "A resume with this data already exists."


class StorageUnavailable(ServiceUnavailable):
    default_message = "Database temporarily unavailable. Please try again later."


@dataclass(frozen=True)
class Classification:
    """Result of classifying a raised failure."""

    category: ErrorCategory
    message: str
    operational: bool

    @property
    def status_code(self) -> int:
        return self.category.status_code


_HTTP_CATEGORIES = {
    400: ErrorCategory.CLIENT_INPUT,
    404: ErrorCategory.NOT_FOUND,
    408: ErrorCategory.REQUEST_TIMEOUT,
    429: ErrorCategory.RATE_LIMITED,
    503: ErrorCategory.SERVICE_UNAVAILABLE,
}


def classify(exc: BaseException) -> Classification:
    """Map any raised failure to a client-facing classification."""
    if isinstance(exc, AppError):
        return Classification(exc.category, exc.message, operational=True)

    if isinstance(exc, RequestValidationError):
        return Classification(
            ErrorCategory.CLIENT_INPUT,
            "Invalid request parameters.",
            operational=True,
        )

    if isinstance(exc, StarletteHTTPException):
        category = _HTTP_CATEGORIES.get(exc.status_code)
        if category is None and 400 <= exc.status_code < 500:
            category = ErrorCategory.CLIENT_INPUT
        if category is not None:
            return Classification(category, str(exc.detail), operational=True)

    return Classification(ErrorCategory.INTERNAL, GENERIC_MESSAGE, operational=False)


def error_envelope(
    classification: Classification,
    exc: BaseException,
    settings: Settings,
) -> dict:
    """Build the failure body; development mode exposes the raw error."""
    body = {
        "success": False,
        "message": classification.message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if settings.is_development:
        if not classification.operational:
            body["message"] = str(exc) or GENERIC_MESSAGE
        body["error"] = f"{type(exc).__name__}: {exc}"
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return body


def _log_failure(
    request: Request,
    classification: Classification,
    exc: BaseException,
    settings: Settings,
) -> None:
    message = (
        f"{request.method} {request.url.path} -> {classification.status_code} "
        f"{type(exc).__name__}: {exc}"
    )
    if settings.is_development or not classification.operational:
        logger.error(message, exc_info=exc)
    else:
        logger.error(message)


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the exception handlers that produce every failure response."""

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        classification = classify(exc)
        if (
            isinstance(exc, StarletteHTTPException)
            and exc.status_code == 404
            and request.url.path.startswith("/api/")
            and exc.detail == "Not Found"
        ):
            classification = Classification(
                ErrorCategory.NOT_FOUND,
                f"API route not found: {request.method} {request.url.path}",
                operational=True,
            )
        _log_failure(request, classification, exc, settings)
        status_code = classification.status_code
        if isinstance(exc, StarletteHTTPException) and classification.operational:
            status_code = exc.status_code
        return JSONResponse(
            status_code=status_code,
            content=error_envelope(classification, exc, settings),
        )

    app.add_exception_handler(AppError, handle)
    app.add_exception_handler(RequestValidationError, handle)
    app.add_exception_handler(StarletteHTTPException, handle)
    app.add_exception_handler(Exception, handle)
