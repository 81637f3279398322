"""Application errors and the JSON error envelope."""

from typing import Any

from fastapi import HTTPException, status


def error_envelope(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """The body every error response carries."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
    }


class AppException(HTTPException):
    """Base application exception.

    Subclasses pick their HTTP status and error code through the
    ``http_status`` / ``error_code`` class attributes.
    """

    http_status: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "APP_ERROR"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.code = self.error_code
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(
            status_code=self.http_status,
            detail=error_envelope(self.code, self.message, self.details),
        )


# ==========================================
# Access
# ==========================================

class AuthenticationError(AppException):
    http_status = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTH_FAILED"
    default_message = "Authentication failed"

    def __init__(self, message: str | None = None):
        super().__init__(message)


class PermissionDeniedError(AppException):
    http_status = status.HTTP_403_FORBIDDEN
    error_code = "PERMISSION_DENIED"
    default_message = "Permission denied"

    def __init__(self, message: str | None = None, required_roles: list[str] | None = None):
        super().__init__(message, {"required_roles": required_roles} if required_roles else None)


class SchoolSuspendedError(AppException):
    """Raised for writes against a suspended school; reads stay allowed."""

    http_status = status.HTTP_403_FORBIDDEN
    error_code = "SCHOOL_SUSPENDED"
    default_message = "School is suspended. All mutations are blocked."

    def __init__(self, slug: str | None = None):
        super().__init__(details={"school": slug} if slug else None)


# ==========================================
# Input
# ==========================================

class ValidationError(AppException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"
    default_message = "Validation error"


class NotFoundError(AppException):
    http_status = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", identifier: str | None = None):
        super().__init__(
            f"{resource} not found",
            {"identifier": identifier} if identifier else None,
        )


# ==========================================
# Report card generation
# ==========================================

class NoActiveEnrollmentError(AppException):
    """Nobody (or not the requested student) is actively enrolled."""

    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "NO_ACTIVE_ENROLLMENT"
    default_message = "No active enrollment found"

    def __init__(self, message: str | None = None):
        super().__init__(message)


class NoPublishedAssessmentsError(AppException):
    """No published assessments remain after term filtering."""

    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "NO_PUBLISHED_ASSESSMENTS"
    default_message = "No published assessments found"

    def __init__(self, term_label: str | None = None):
        if term_label:
            super().__init__(f'{self.default_message} for term "{term_label}"', {"term": term_label})
        else:
            super().__init__()


class NoMarksRecordedError(AppException):
    """The student has no mark rows to anchor assessment discovery on."""

    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "NO_MARKS_RECORDED"
    default_message = "No marks have been recorded for this student yet"

    def __init__(self, student_id: int):
        super().__init__(details={"student_id": student_id})


class UnmatchedGradeBandError(AppException):
    """A percentage fell outside every configured grade band."""

    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "UNMATCHED_GRADE_BAND"

    def __init__(self, percentage: Any):
        percentage = round(float(percentage), 2)
        super().__init__(f"No grade band covers {percentage}%", {"percentage": percentage})


class ReportGenerationError(AppException):
    """A lower-level failure aborted a report card generation pass."""

    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "REPORT_GENERATION_FAILED"
    default_message = "Failed to generate report cards"
