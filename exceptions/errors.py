"""
Custom exception classes for the application.

Data-quality errors (InvalidDateError, UnclassifiedActionTypeError) are raised
while reading a single row and collected as warnings by the caller; they never
escape the pairing engine.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "CUSTOMER_NOT_FOUND")
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


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


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


# ===================
# ORDER RECORD ERRORS
# ===================

class InvalidDateError(ValidationError):
    """Order record date could not be parsed."""

    def __init__(
        self,
        document_id: Optional[str],
        field: str,
        value: Any,
        sheet_row: Optional[int] = None
    ):
        super().__init__(
            code="INVALID_DATE",
            message=f"Unparseable {field} on document {document_id}",
            details={
                "document_id": document_id,
                "field": field,
                "value": None if value is None else str(value),
                "sheet_row": sheet_row,
            }
        )


class UnclassifiedActionTypeError(ValidationError):
    """Action type matches neither drop nor pickup keywords (advisory)."""

    def __init__(
        self,
        document_id: Optional[str],
        action_type: str,
        sheet_row: Optional[int] = None
    ):
        super().__init__(
            code="UNCLASSIFIED_ACTION_TYPE",
            message=f"Action type '{action_type}' on document {document_id} is neither drop nor pickup",
            details={
                "document_id": document_id,
                "action_type": action_type,
                "sheet_row": sheet_row,
            }
        )


class MissingFieldError(ValidationError):
    """Required sheet column is empty for a row."""

    def __init__(
        self,
        document_id: Optional[str],
        field: str,
        sheet_row: Optional[int] = None
    ):
        super().__init__(
            code="MISSING_FIELD",
            message=f"Required field '{field}' is empty",
            details={
                "document_id": document_id,
                "field": field,
                "sheet_row": sheet_row,
            }
        )


# ===================
# CUSTOMER ERRORS
# ===================

class CustomerNotFoundError(NotFoundError):
    """No order history for the customer key."""

    def __init__(self, customer_key: str):
        super().__init__(
            resource="Customer",
            identifier=customer_key,
            code="CUSTOMER_NOT_FOUND"
        )


# ===================
# ORDER ERRORS
# ===================

class OrderNotFoundError(NotFoundError):
    """No CRM row at the given sheet row."""

    def __init__(self, sheet_row: int):
        super().__init__(
            resource="Order",
            identifier=str(sheet_row),
            code="ORDER_NOT_FOUND"
        )


# ===================
# SHEETS BACKEND ERRORS
# ===================

class SheetsBackendError(ExternalServiceError):
    """Apps Script backend request failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="sheets",
            message=message,
            details=details
        )


class SheetsNotConfiguredError(AppError):
    """Apps Script URL is not set."""

    def __init__(self):
        super().__init__(
            code="SHEETS_NOT_CONFIGURED",
            message="SHEETS_SCRIPT_URL is not configured",
            status_code=503,
        )


# ===================
# EXPORT PARSER ERRORS
# ===================

class CrmExportParseError(ValidationError):
    """CRM sheet export could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CRM_EXPORT_PARSE_ERROR",
            message=message,
            details=details
        )
