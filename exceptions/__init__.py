"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    ExternalServiceError,
    DatabaseError,

    # Backend
    BackendUnavailableError,

    # Import
    RowValidationError,
    ResolutionError,
    CreationError,
    BatchAbortedError,

    # Transfer
    InvalidTransferError,

    # Spreadsheet
    SheetParseError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "ExternalServiceError",
    "DatabaseError",

    # Backend
    "BackendUnavailableError",

    # Import
    "RowValidationError",
    "ResolutionError",
    "CreationError",
    "BatchAbortedError",

    # Transfer
    "InvalidTransferError",

    # Spreadsheet
    "SheetParseError",
]
