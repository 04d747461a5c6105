"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,

    # Order records
    InvalidDateError,
    UnclassifiedActionTypeError,
    MissingFieldError,

    # Customers
    CustomerNotFoundError,

    # Orders
    OrderNotFoundError,

    # Sheets backend
    SheetsBackendError,
    SheetsNotConfiguredError,

    # Export parser
    CrmExportParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",

    # Order records
    "InvalidDateError",
    "UnclassifiedActionTypeError",
    "MissingFieldError",

    # Customers
    "CustomerNotFoundError",

    # Orders
    "OrderNotFoundError",

    # Sheets backend
    "SheetsBackendError",
    "SheetsNotConfiguredError",

    # Export parser
    "CrmExportParseError",
]
