"""
API error taxonomy.

Every rejection raised by the admission layer is an ApiError carrying a
stable machine-readable code. Handlers in main.py render them as:

    {"error": "<message>", "code": "<CODE>", "details": {...} | null}
"""

from enum import Enum
from typing import Any, Optional

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONTENT_VALIDATION_ERROR = "CONTENT_VALIDATION_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    DUPLICATE_VOTE = "DUPLICATE_VOTE"
    NOT_FOUND = "NOT_FOUND"
    CONTENT_HIDDEN = "CONTENT_HIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    DATABASE_ERROR = "DATABASE_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ApiError(Exception):
    """Base class for errors surfaced to API clients."""

    code: ErrorCode = ErrorCode.UNEXPECTED_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the error envelope."""
        return {
            "error": self.message,
            "code": self.code.value,
            "details": self.details,
        }


class ValidationError(ApiError):
    """Malformed input shape."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ContentValidationError(ApiError):
    """Content failed the profanity or spam checks."""

    code = ErrorCode.CONTENT_VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid content"


class RateLimitExceededError(ApiError):
    """Caller exhausted the window for an action. Retryable after retry_after seconds."""

    code = ErrorCode.RATE_LIMIT_EXCEEDED
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Rate limit exceeded"

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(
            message=message,
            details={"retryAfter": retry_after},
            headers={"Retry-After": str(retry_after)},
        )


class DuplicateVoteError(ApiError):
    """Device already voted on this take. Not retryable."""

    code = ErrorCode.DUPLICATE_VOTE
    status_code = status.HTTP_409_CONFLICT
    default_message = "You have already voted on this take"


class NotFoundError(ApiError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ContentHiddenError(ApiError):
    code = ErrorCode.CONTENT_HIDDEN
    status_code = status.HTTP_410_GONE
    default_message = "This take has been removed"


class UnauthorizedError(ApiError):
    code = ErrorCode.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Admin access required"


class DatabaseError(ApiError):
    """Storage failure. The underlying driver error is never exposed."""

    code = ErrorCode.DATABASE_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "A database error occurred"
