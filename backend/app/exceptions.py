"""
Storefront Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions, one per failure kind.
Why:   Services raise a typed error where the problem is detected; a single
       global handler (main.py) turns it into a JSON envelope with a stable
       status code. No route writes its own error response.
How:   Each class carries a message, a context dict, an HTTP status code and
       a machine-readable error code.

Exception Hierarchy:
    StorefrontError (base)                  → 500
    ├── ValidationError                     → 400 Bad Request
    ├── UnauthorizedError                   → 401 Unauthorized
    │   └── ForbiddenError                  → 403 Forbidden
    ├── NotFoundError                       → 404 Not Found
    ├── RateLimitExceededError              → 429 Too Many Requests
    └── UpstreamError                       → 502 Bad Gateway
        ├── CircuitBreakerOpenError         → 503 Service Unavailable
        └── DatabaseError                   → 502 Bad Gateway
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """
    Base exception for all Storefront application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned when expose_context)
        status_code:  HTTP status the global handler responds with
        error_code:   Machine-readable code placed in the response body
    """

    status_code: int = 500
    error_code: str = "internal_server_error"
    # Whether `context` is safe to include in the response `details`
    expose_context: bool = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def headers(self) -> Dict[str, str]:
        """Extra response headers (e.g. Retry-After)."""
        return {}


class ValidationError(StorefrontError):
    """
    Raised when client input fails validation or a business rule.

    When:  Missing fields, negative price, duplicate email, wrong login,
           Admin creating a product without a shop, unsupported image.
    """

    status_code = 400
    error_code = "validation_error"
    expose_context = True

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


class UnauthorizedError(StorefrontError):
    """Raised when a request carries no usable identity (missing/invalid/expired token)."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

    @property
    def headers(self) -> Dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(UnauthorizedError):
    """
    Raised when an authenticated actor is not allowed to perform an action.

    When:  Role mismatch (non-Admin on the dashboard) or shop/owner mismatch
           from the authorization policy.
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

    @property
    def headers(self) -> Dict[str, str]:
        return {}


class NotFoundError(StorefrontError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None (or a zero row count) for missing records; the
    service layer converts that into this exception.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(StorefrontError):
    """Raised when a client exceeds the per-IP limit on the auth endpoints."""

    status_code = 429
    error_code = "rate_limit_exceeded"
    expose_context = True

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

    @property
    def headers(self) -> Dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class UpstreamError(StorefrontError):
    """
    Raised when an external collaborator (image host, store) fails.

    The message is safe for clients; the underlying error is kept in context
    and only logged.
    """

    status_code = 502
    error_code = "upstream_error"

    def __init__(
        self,
        message: str = "An upstream service failed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CircuitBreakerOpenError(UpstreamError):
    """
    Raised when the upload circuit breaker is OPEN.

    After cb_failure_threshold consecutive upload failures, calls are
    rejected immediately until cb_recovery_timeout elapses.
    """

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Image upload service is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time

    @property
    def headers(self) -> Dict[str, str]:
        return {"Retry-After": str(self.recovery_time)}


class DatabaseError(UpstreamError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; SQL details stay
    in the server log.
    """

    status_code = 502
    error_code = "database_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
