"""
Centralized error handling and user-friendly error messages.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

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


class AIServiceError(AppError):
    """AI service error."""
    def __init__(self, message: str = "AI service temporarily unavailable", details: dict | None = None):
        super().__init__(message, status_code=503, details=details)


class FileUploadError(AppError):
    """File upload error."""
    def __init__(self, message: str, status_code: int = 400, details: dict | None = None):
        super().__init__(message, status_code=status_code, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid email or password",
    "email_exists": "User with this email already exists",
    "weak_password": "Password must be at least 6 characters long.",
    "missing_registration_fields": "Name, email, and password are required",
    "role_mismatch": "Role mismatch. Please select the correct account type.",

    # File uploads
    "no_file": "No file uploaded",
    "file_too_large": "File is too large. Maximum size is {limit}MB.",
    "invalid_cv_type": "Invalid file type. Only PDF, DOC, and DOCX files are allowed.",
    "invalid_ats_type": "Invalid file type. Only PDF, DOC, DOCX, and TXT files are allowed.",
    "cv_upload_failed": "Failed to upload CV",

    # AI services
    "ai_unavailable": "AI analysis is temporarily unavailable. Please try again in a few moments.",
    "ai_not_configured": "AI analysis is not configured on this server.",
    "job_description_required": "Job description is required",
    "cv_required": "CV file is required",

    # Skills
    "skill_ids_required": "skillIds array is required",
    "skill_names_required": "names array is required",
    "valid_skill_names_required": "Valid skill names are required",
    "skills_exist": "All skills already exist",
    "unknown_skills": "One or more skills do not exist",

    # Jobs
    "job_not_found": "Job not found",
    "job_required_fields": "Title, description, company, and location are required",
    "job_update_denied": "Job not found or you do not have permission to update it",
    "job_delete_denied": "Job not found or you do not have permission to delete it",
    "job_view_denied": "Job not found or you do not have permission",

    # Applications
    "already_applied": "You have already applied to this job",
    "application_denied": "Application not found or you do not have permission",
    "invalid_application_status": "Invalid status. Must be pending, accepted, or rejected",
    "application_finalized": "Application has already been {status} and cannot be changed",

    # Messages
    "message_fields_required": "Receiver ID and content are required",
    "receiver_not_found": "Receiver not found",
    "same_role_message": "Cannot message users with the same role",

    # General
    "user_not_found": "User not found",
    "unauthorized": "Please login to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "server_error": "Internal server error",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None, **params) -> str:
    """Get a user-friendly error message."""
    message = ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])
    return message.format(**params) if params else message


def handle_file_upload_error(error: Exception, filename: str = "") -> HTTPException:
    """Map a failed CV write to a user-facing HTTPException."""
    logger.error(f"File upload error for {filename}: {error}")

    if isinstance(error, HTTPException):
        return error
    if isinstance(error, AppError):
        return HTTPException(status_code=error.status_code, detail=error.message)

    return HTTPException(
        status_code=500,
        detail=get_error_message("cv_upload_failed")
    )


def handle_database_error(error: Exception, operation: str = "") -> HTTPException:
    """Handle database errors with user-friendly messages."""
    logger.error(f"Database error during {operation}: {error}")

    error_str = str(error).lower()

    # Detect specific DB errors
    if "duplicate" in error_str or "unique" in error_str:
        return HTTPException(
            status_code=409,
            detail="This record already exists. Please check your input."
        )

    if "foreign key" in error_str:
        return HTTPException(
            status_code=400,
            detail="Invalid reference. The related record may have been deleted."
        )

    if "connection" in error_str or "operational" in error_str:
        return HTTPException(
            status_code=503,
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
    """Create a standardized error response."""
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


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"success": false, "error", "status_code"}``."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return create_error_response(exc.status_code, exc.detail)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        logger.exception("Database OperationalError: %s", exc)
        return create_error_response(503, get_error_message("database_error"))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning("ValueError: %s", exc)
        return create_error_response(400, str(exc) or get_error_message("validation_error"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))
