"""
Custom exceptions module.

Domain errors raised by the reconciliation service and its collaborators.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,
    DatabaseError,

    # Ledger
    LedgerRecordNotFoundError,
    LedgerParseError,

    # Reconciliation
    AssetTagInUseError,
    PendingLinkConflictError,
    PendingLinkNotFoundError,
    PastedDataParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",
    "DatabaseError",

    # Ledger
    "LedgerRecordNotFoundError",
    "LedgerParseError",

    # Reconciliation
    "AssetTagInUseError",
    "PendingLinkConflictError",
    "PendingLinkNotFoundError",
    "PastedDataParseError",
]
