"""
Linite Backend — Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the command-generation service.
How:   Each exception carries a client-safe message and an optional context
       dict. Global handlers registered in main.py map them to HTTP responses.
Who:   Raised by the catalog loader, the generator service and middleware.

Exception Hierarchy:
    LiniteError (base)
    ├── NotFoundError            → 404 Not Found
    ├── ConfigurationError       → 422 Unprocessable Entity
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests

Per-app failures (an app with no usable package) are NOT exceptions: they are
collected into the `errors` list of a response and the batch continues.
"""

from typing import Any, Dict, Optional


class LiniteError(Exception):
    """
    Base exception for all Linite application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only selectively returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(LiniteError):
    """
    Raised when a requested catalog entity does not exist.

    When:    Unknown distro slug, or none of the requested app ids matched.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ConfigurationError(LiniteError):
    """
    Raised when catalog data exists but cannot be used as configured.

    When:    A distro has no package sources attached. Generation stops before
             any app is processed.
    HTTP:    422 Unprocessable Entity
    """

    def __init__(
        self,
        message: str = "The catalog is misconfigured",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(LiniteError):
    """
    Raised when reading the catalog fails.

    When:    Retries for transient errors are exhausted, or a non-transient
             SQLAlchemy error occurs.
    HTTP:    500 Internal Server Error. The client only ever sees a generic
             message; the context is logged server-side.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(LiniteError):
    """
    Raised when a client exceeds the per-IP command-generation rate limit.

    HTTP: 429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before generating more commands."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
