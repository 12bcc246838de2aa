"""
Custom business exceptions for the reading endpoints.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Consistent error envelope across all API endpoints
HOW: Custom exception classes with error codes, status and details
"""

from typing import Optional, List, Dict, Any


class BusinessException(Exception):
    """Base class for business logic exceptions."""

    status_code = 400

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ValidationException(BusinessException):
    """Raised for caller input that must never reach the language service."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field_errors": field_errors} if field_errors else None
        )
