"""
Centralized error handling and user-friendly error messages.
"""
import logging

from fastapi import HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Validation error."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class ConflictError(AppError):
    """Record already exists (e.g. duplicate email)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class StorageError(AppError):
    """Flat-file storage error."""
    def __init__(self, message: str = "Storage operation failed", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "auth_required": "Authentication required",
    "invalid_token": "Invalid or expired token",
    "invalid_refresh_token": "Invalid or expired refresh token",
    "refresh_token_required": "Refresh token is required",
    "user_not_found": "User not found",
    "email_required": "Email is required",
    "email_exists": "User with this email already exists",

    # Registration
    "registration_fields": "Name, email, phone, and role are required",
    "invalid_role": 'Role must be either "employer" or "employee"',
    "employer_fields": "Company name and location are required for employers",
    "invalid_experiences": "Invalid experiences format",

    # File uploads
    "file_too_large": "File is too large. Maximum size is 5MB.",
    "invalid_file_type": "Only image files are allowed",
    "file_corrupted": "File appears to be corrupted. Please try uploading again.",
    "file_processing_failed": "Failed to process your file. Please try again.",

    # Jobs
    "job_not_found": "Job not found",
    "job_fields": "Title and description are required",
    "job_closed": "Cannot show interest in a closed job",
    "employer_only": "Only employers can post jobs",
    "employee_only": "Only employees can show interest in jobs",
    "close_own_jobs": "You can only close your own job posts",
    "applicants_own_jobs": "You can only view applicants for your own jobs",
    "applicants_employer_only": "Only employers can view applicants",
    "poster_not_found": "Job poster does not exist",

    # General
    "forbidden": "You don't have permission to access this resource.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "storage_error": "Storage is temporarily unavailable. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def handle_file_upload_error(error: OSError, filename: str = "") -> HTTPException:
    """Map a failed write of an uploaded file to a 500 with a user-friendly message."""
    logger.error("File upload error for %s: %s", filename, error)
    return HTTPException(
        status_code=500,
        detail=get_error_message("file_processing_failed")
    )


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )
