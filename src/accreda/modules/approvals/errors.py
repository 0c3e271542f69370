"""
Approval Service Errors

Every failure of the token flow is an ApprovalServiceError carrying a
machine-readable error code and the HTTP status the routers respond with.
"""

from fastapi import HTTPException


class ApprovalServiceError(Exception):
    """Base exception for approval token errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidApprovalRequestError(ApprovalServiceError):
    """Raised when a request is missing data or asks for something impossible."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_REQUEST", status_code=400)


class NotSubjectOwnerError(ApprovalServiceError):
    """Raised when a user issues a token for a subject they do not own."""

    def __init__(self):
        super().__init__(
            message="You can only send approval requests for your own records.",
            error_code="FORBIDDEN",
            status_code=403,
        )


class TokenNotFoundError(ApprovalServiceError):
    """Raised when no token row matches."""

    def __init__(self):
        super().__init__(
            message="Invalid or expired link.",
            error_code="TOKEN_NOT_FOUND",
            status_code=404,
        )


class SubjectNotFoundError(ApprovalServiceError):
    """Raised when the record a token or request points at does not exist."""

    def __init__(self, subject_id=None):
        message = f"Subject {subject_id} not found" if subject_id else "Subject not found"
        super().__init__(message=message, error_code="SUBJECT_NOT_FOUND", status_code=404)


class TokenAlreadyConsumedError(ApprovalServiceError):
    """Raised when a token has already been used to approve its subject."""

    def __init__(self):
        super().__init__(
            message="Already approved.",
            error_code="ALREADY_APPROVED",
            status_code=409,
        )


class SubjectFinalizedError(ApprovalServiceError):
    """Raised when a subject is already in a terminal status."""

    def __init__(self, status: str):
        super().__init__(
            message=f"This request has already been completed (status: {status}).",
            error_code="SUBJECT_FINALIZED",
            status_code=409,
        )


class InvalidStatusTransitionError(ApprovalServiceError):
    """Raised when a subject status change is not allowed outside an admin override."""

    def __init__(self, current_status: str, new_status: str):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            message=f"Invalid status transition: {current_status} -> {new_status}.",
            error_code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


class TokenExpiredError(ApprovalServiceError):
    """Raised when a token is past its expiry."""

    def __init__(self):
        super().__init__(
            message="This link has expired.",
            error_code="TOKEN_EXPIRED",
            status_code=410,
        )


class RateLimitExceededError(ApprovalServiceError):
    """Raised when too many requests are issued for one subject."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        minutes = max(1, retry_after_seconds // 60)
        super().__init__(
            message=f"Too many requests for this record. Please try again in {minutes} minute(s).",
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
        )


class ServiceUnavailableError(ApprovalServiceError):
    """Raised when a required backing service is down."""

    def __init__(self):
        super().__init__(
            message="Service temporarily unavailable. Please try again later.",
            error_code="SERVICE_UNAVAILABLE",
            status_code=503,
        )


def to_http_exception(error: ApprovalServiceError) -> HTTPException:
    """Translate a service error into the API's error response."""
    headers = None
    if isinstance(error, RateLimitExceededError):
        headers = {"Retry-After": str(error.retry_after_seconds)}

    return HTTPException(
        status_code=error.status_code,
        detail={
            "error": error.error_code,
            "message": error.message,
        },
        headers=headers,
    )


def internal_error() -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )
