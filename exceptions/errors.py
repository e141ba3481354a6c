"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict
so routes can return a uniform error envelope.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "ASSET_TAG_IN_USE")
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


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
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
# LEDGER ERRORS
# ===================

class LedgerRecordNotFoundError(NotFoundError):
    """Asset tag not present in the ledger snapshot."""

    def __init__(self, asset_tag: str):
        super().__init__(
            resource="Ledger record",
            identifier=asset_tag,
            code="LEDGER_RECORD_NOT_FOUND"
        )


class LedgerParseError(ValidationError):
    """Ledger export could not be parsed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="LEDGER_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# RECONCILIATION ERRORS
# ===================

class AssetTagInUseError(ConflictError):
    """Asset tag already assigned to a record or pending link."""

    def __init__(self, asset_tag: str, holder_id: Optional[str] = None):
        super().__init__(
            code="ASSET_TAG_IN_USE",
            message=f"Asset tag {asset_tag} is already in use",
            details={"asset_tag": asset_tag, "holder_id": holder_id}
        )


class PendingLinkConflictError(ConflictError):
    """Inventory record already has a pending link."""

    def __init__(self, record_id: str):
        super().__init__(
            code="PENDING_LINK_EXISTS",
            message="Record already has a pending link",
            details={"record_id": record_id}
        )


class PendingLinkNotFoundError(NotFoundError):
    """Pending link index out of range."""

    def __init__(self, index: int):
        super().__init__(
            resource="Pending link",
            identifier=str(index),
            code="PENDING_LINK_NOT_FOUND"
        )


class PastedDataParseError(ValidationError):
    """Pasted spreadsheet rows could not be parsed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="PASTED_DATA_PARSE_ERROR",
            message=message,
            details=details
        )
