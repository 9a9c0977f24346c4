"""
Custom exception classes for the application.

Row-level errors (RowValidationError, ResolutionError, CreationError) are
recorded in the import report by the batch importer. Only backend outages
escape a batch.
"""

from typing import Optional, Any, TYPE_CHECKING
from datetime import datetime, timezone

if TYPE_CHECKING:
    from models.imports import ImportReport


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# BACKEND ERRORS
# ===================

class BackendUnavailableError(ExternalServiceError):
    """Inventory backend cannot be reached at all."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            service="backend",
            message=f"Backend unavailable during {operation}: {message}",
            details={"operation": operation}
        )


# ===================
# IMPORT ERRORS
# ===================

class RowValidationError(ValidationError):
    """Import row is missing required fields or has malformed values."""

    def __init__(self, fields: list[str], errors: Optional[list[dict]] = None):
        self.fields = fields
        super().__init__(
            code="ROW_VALIDATION_FAILED",
            message=f"validation: {', '.join(fields)}",
            details={"fields": fields, "errors": errors or []}
        )


class ResolutionError(AppError):
    """A category or supplier name could not be resolved to an identifier."""

    def __init__(self, kind: str, name: str, reason: Optional[str] = None):
        self.kind = kind
        self.name = name
        message = f"{kind.capitalize()} not found and could not be created: {name}"
        super().__init__(
            code="REFERENCE_RESOLUTION_FAILED",
            message=message,
            status_code=422,
            details={"kind": kind, "name": name, "reason": reason}
        )


class CreationError(AppError):
    """Backend rejected the final entity payload."""

    def __init__(self, entity: str, message: str, details: Optional[dict] = None):
        super().__init__(
            code="ENTITY_CREATION_FAILED",
            message=f"{entity} could not be created: {message}",
            status_code=422,
            details={"entity": entity, **(details or {})}
        )


class BatchAbortedError(AppError):
    """
    Whole import batch stopped because the backend went away.

    Rows processed before the outage are kept in ``report``.
    """

    def __init__(self, report: "ImportReport", cause: AppError):
        self.report = report
        super().__init__(
            code="IMPORT_BATCH_ABORTED",
            message=f"Import aborted after {report.total} rows: {cause.message}",
            status_code=503,
            details={
                "processed": report.total,
                "successful": report.successful,
                "failed": report.failed,
                "cause": cause.code,
            }
        )


# ===================
# TRANSFER ERRORS
# ===================

class InvalidTransferError(ValidationError):
    """Transfer request violates a precondition."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_TRANSFER",
            message=message,
            details=details
        )


# ===================
# SPREADSHEET ERRORS
# ===================

class SheetParseError(ValidationError):
    """Uploaded spreadsheet could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="SHEET_PARSE_ERROR",
            message=message,
            details=details
        )
