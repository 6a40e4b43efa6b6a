"""
Domain exceptions for the hiring pipeline.

Every service-level failure is raised as one of these so the HTTP layer can
tell the four kinds apart without parsing messages.
"""

from typing import Any, Optional

from fastapi import status


class ApplicationError(Exception):
    """Base exception for application tracking failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "APPLICATION_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(ApplicationError):
    """Application, job, note, or interview round does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class Conflict(ApplicationError):
    """Duplicate application for the same job and applicant."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class ValidationError(ApplicationError):
    """Out-of-range score or rating, missing text, malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class Forbidden(ApplicationError):
    """Caller is not allowed to perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
