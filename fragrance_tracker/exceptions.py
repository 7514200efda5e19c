"""
Fragrance Tracker Backend: Custom Exception Hierarchy
======================================================

What:  Application-specific exceptions for the error taxonomy of the API.
How:   Each exception carries a message, an optional context dict, a
       machine-readable `code` and the HTTP `status_code` it maps to.
       Global exception handlers (registered in main.py) catch these and
       return the `{success: false, error: {code, message}}` envelope.
Who:   Raised by services and repositories; caught by global handlers,
       by the daily-wear recorder and by the periodic sweep.

Exception Hierarchy:
    FragranceTrackerError (base)     → 500 INTERNAL_ERROR
    ├── ValidationError              → 400 VALIDATION_ERROR
    ├── NotFoundError                → 404 NOT_FOUND
    ├── AlreadyExistsError           → 409 CONFLICT
    └── DatabaseError                → 500 INTERNAL_ERROR
"""

from typing import Any, Dict, Optional


class FragranceTrackerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only as `details`
                  for client-correctable errors)
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FragranceTrackerError):
    """
    Raised when client input fails a business rule.

    When:    Out-of-range percentages, inverted date ranges, malformed dates
             that slipped past schema validation.
    HTTP:    400 Bad Request
    """

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(FragranceTrackerError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown fragrance id, no inventory record for a fragrance,
             unknown daily wear id.
    HTTP:    404 Not Found

    Repositories return None for missing rows; services convert None into
    this exception where the caller must be told.
    """

    code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class AlreadyExistsError(FragranceTrackerError):
    """
    Raised when creating a resource that must be unique and already exists.

    When:    A second inventory record for the same fragrance, a second
             daily wear record for the same user and date.
    HTTP:    409 Conflict
    """

    code = "CONFLICT"
    status_code = 409

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(FragranceTrackerError):
    """
    Raised when a persistence operation fails unexpectedly.

    When:    Connection lost mid-query, locked database, constraint violation
             that the service did not anticipate.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the original
    error type travels in `context` and is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
