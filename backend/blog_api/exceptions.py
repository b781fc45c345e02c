"""
Modern Blog API — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each error class the API exposes.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn them into JSON
       responses with the matching HTTP status code.
Who:   Raised by services, the auth dependency and middleware.

Exception Hierarchy:
    BlogError (base)
    ├── ValidationError          → 400 Bad Request (field-level errors)
    ├── ConflictError            → 400 Bad Request (uniqueness violation)
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests (built by RateLimitMiddleware)
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

`context` is logged server-side and never serialized into a response.
"""

from typing import Any, Dict, List, Optional


class BlogError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BlogError):
    """
    Raised when client input fails a business rule that schemas cannot express,
    e.g. a post referencing a category id that does not exist.

    `errors` mirrors the shape produced for schema failures:
    a list of {"field": ..., "message": ...} entries.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.field = field
        if errors is None:
            errors = [{"field": field, "message": message}] if field else []
        self.errors = errors


class ConflictError(BlogError):
    """
    Raised when a create would violate a uniqueness constraint.

    The message is the user-facing text ("Category already exists") and is
    returned verbatim with a 400 status.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(BlogError):
    """Missing, malformed, expired or unknown bearer credential."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(BlogError):
    """
    Raised by the authorization policy when the actor may not perform the action.

    Context records resource/action/actor for the server log.
    """

    def __init__(
        self,
        message: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BlogError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so routes never deal with HTTP status codes directly.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(BlogError):
    """Could not write an uploaded file to the storage volume."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BlogError):
    """
    Raised when a store operation fails unexpectedly.

    The client always receives a generic message; the underlying driver error
    goes to the log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BlogError):
    """Client exceeded the write-request limit for the current window."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
