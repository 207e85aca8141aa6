"""
Centralized error handling and user-facing error messages.
"""
import logging

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

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


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class UnauthorizedError(AppError):
    """Unauthorized access error."""
    def __init__(self, message: str = "Unauthorized access", details: dict | None = None):
        super().__init__(message, status_code=401, details=details)


class ForbiddenError(AppError):
    """Forbidden access error."""
    def __init__(self, message: str = "Access forbidden", details: dict | None = None):
        super().__init__(message, status_code=403, details=details)


class DatabaseError(AppError):
    """Database error."""
    def __init__(self, message: str = "Database operation failed", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid email or password",
    "invalid_refresh_token": "Invalid or expired refresh token",
    "invalid_reset_token": "Invalid or expired reset token",
    "email_exists": "User with this email already exists",
    "weak_password": "Password does not meet complexity requirements",
    "password_mismatch": "Passwords do not match",
    "admin_registration": "Cannot self-register as an administrator",
    "invalid_current_password": "Current password is incorrect",

    # Users
    "user_not_found": "User not found",

    # Companies
    "company_not_found": "Company not found",
    "owner_not_employer": "Company owner must be an employer.",
    "owner_has_companies": "Cannot change the role of a user who still owns companies.",

    # Categories
    "category_not_found": "Category not found",
    "category_exists": "A category with this name already exists",
    "category_in_use": "Category is used by existing jobs and cannot be deleted",

    # Jobs
    "job_not_found": "Job not found",
    "job_closed": "This job is no longer accepting applications.",

    # Applications
    "application_not_found": "Job application not found",
    "already_applied": "You have already applied to this job.",

    # General
    "unauthorized": "Not authenticated",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-facing error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def get_or_404(db: Session, model, obj_id: int, error_key: str = "not_found"):  # noqa: ANN001
    obj = db.get(model, obj_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=get_error_message(error_key))
    return obj


def handle_database_error(error: Exception, operation: str = "") -> HTTPException:
    """Map a failed write to an HTTPException the handlers can render."""
    logger.error("Database error during %s: %s", operation, error)

    error_str = str(error).lower()

    if "duplicate" in error_str or "unique" in error_str:
        return HTTPException(
            status_code=400,
            detail="This record already exists. Please check your input."
        )

    if "foreign key" in error_str:
        return HTTPException(
            status_code=400,
            detail="Invalid reference. The related record may have been deleted."
        )

    if "connection" in error_str or "operational" in error_str:
        return HTTPException(
            status_code=500,
            detail=get_error_message("database_error")
        )

    return HTTPException(
        status_code=500,
        detail=get_error_message("server_error")
    )


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error envelope."""
    content = {
        "success": False,
        "error": message,
        "status_code": status_code,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def commit_or_raise(db: Session, operation: str) -> None:
    """Commit the request's unit of work, rolling back and mapping DB errors on failure."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, operation) from e
