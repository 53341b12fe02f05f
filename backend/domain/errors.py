"""
Custom domain exceptions for consistent error handling.

HTTP-facing errors subclass HTTPException and are mapped to the standard error
envelope by the exception handlers in main.py. Notification errors are raised
and handled inside the dispatcher and never reach the HTTP layer.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """Validation error (400)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class MalformedNotificationError(Exception):
    """Raised when a notification lacks its order code or status."""

    def __init__(self, missing: list[str], order_code=None, status=None):
        super().__init__(f"Notification missing required field(s): {', '.join(missing)}")
        self.missing = missing
        self.order_code = order_code
        self.status = status
