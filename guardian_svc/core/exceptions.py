"""
Shared exception classes and error handling utilities for Guardian Service API.

This module provides:
- Custom exception hierarchy for domain-specific errors
- Consistent error response formatting
- Exception handlers for FastAPI integration

Usage:
    from core.exceptions import IncompletePatientError

    # In service layer - raise domain exceptions
    raise IncompletePatientError(missing=["display_name"])

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASSES
# =============================================================================

class GuardianServiceError(Exception):
    """
    Base exception for all Guardian Service domain errors.

    Provides consistent error structure with status code and detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context to include in error response.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result = {"detail": self.detail}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class InvalidReadingError(GuardianServiceError):
    """Raised when reading data fails validation at the boundary."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid reading data"


class IncompletePatientError(GuardianServiceError):
    """Raised when an operation needs a fully filled-in patient identity."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Patient information is incomplete"

    def __init__(self, missing: Optional[List[str]] = None, **kwargs: Any):
        detail = self.detail
        if missing:
            detail = f"Patient information is incomplete: {', '.join(missing)}"
        super().__init__(detail=detail, missing=missing or [], **kwargs)


class EmptySelectionError(GuardianServiceError):
    """Raised when an export is requested without any selected reading."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Select at least one record"


class MedicationNotFoundError(GuardianServiceError):
    """Raised when a medication event id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Medication record not found"

    def __init__(self, event_id: Optional[str] = None, **kwargs: Any):
        detail = f"Medication record '{event_id}' not found" if event_id else self.detail
        super().__init__(detail=detail, event_id=event_id, **kwargs)


# =============================================================================
# UPLOAD EXCEPTIONS
# =============================================================================

class UploadError(GuardianServiceError):
    """Base exception for image upload errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Upload failed"


class InvalidFileTypeError(UploadError):
    """Raised when an uploaded file is not a supported image."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    detail = "Unsupported file type"


class FileTooLargeError(UploadError):
    """Raised when an uploaded file exceeds the size limit."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    detail = "File size exceeds maximum allowed"


# =============================================================================
# EXTERNAL SERVICE EXCEPTIONS
# =============================================================================

class ExternalServiceError(GuardianServiceError):
    """Raised when an external collaborator call fails."""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "External service error"


class RecognitionError(ExternalServiceError):
    """Raised when the OCR engine cannot read an image."""

    detail = "Recognition failed, make sure the picture is sharp"


class SyncUnavailableError(ExternalServiceError):
    """Raised when there is nothing to sync or the broker is unreachable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Sync is not available"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def guardian_service_exception_handler(
    request: Request,
    exc: GuardianServiceError
) -> JSONResponse:
    """
    Handle GuardianServiceError exceptions and return consistent JSON responses.
    """
    logger.warning(
        f"GuardianServiceError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(GuardianServiceError, guardian_service_exception_handler)
