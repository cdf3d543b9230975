"""
Error taxonomy for Mini Drive.

Every failure a service reports to its caller is one of the exceptions below.
Store-level exceptions (SQLAlchemy) are translated before they leave a
service; only ``StorageFailure`` stands for an infrastructure condition.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error responses."""

    DUPLICATE_IDENTITY = "duplicate_identity"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHENTICATED = "unauthenticated"
    INVALID_TOKEN = "invalid_token"
    NOT_FOUND = "not_found"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    STORAGE_FAILURE = "storage_failure"
    INVALID_REQUEST = "invalid_request"


class DriveError(Exception):
    """Base class for every expected failure in the application."""

    category: ErrorCategory = ErrorCategory.STORAGE_FAILURE
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        """Message safe to put in a response body."""
        return self.message

    def to_dict(self) -> dict:
        return {"error": self.category.value, "message": self.public_message}


class DuplicateIdentity(DriveError):
    category = ErrorCategory.DUPLICATE_IDENTITY
    status_code = 409
    default_message = "Username or email already registered"


class InvalidCredentials(DriveError):
    category = ErrorCategory.INVALID_CREDENTIALS
    status_code = 401
    default_message = "Invalid credentials"


class Unauthenticated(DriveError):
    """
    Session credential rejected.

    Sub-kinds stay distinguishable for logging; clients only ever see the
    generic message.
    """

    category = ErrorCategory.UNAUTHENTICATED
    status_code = 401
    default_message = "Authentication required"

    @property
    def public_message(self) -> str:
        return Unauthenticated.default_message


class MissingCredential(Unauthenticated):
    default_message = "No session credential presented"


class MalformedCredential(Unauthenticated):
    default_message = "Session credential is malformed or tampered"


class ExpiredCredential(Unauthenticated):
    default_message = "Session credential has expired"


class InvalidToken(DriveError):
    category = ErrorCategory.INVALID_TOKEN
    status_code = 404
    default_message = "Invalid receive token"


class NotFound(DriveError):
    category = ErrorCategory.NOT_FOUND
    status_code = 404
    default_message = "File not found"


class PayloadTooLarge(DriveError):
    category = ErrorCategory.PAYLOAD_TOO_LARGE
    status_code = 413
    default_message = "File exceeds the maximum allowed size"


class StorageFailure(DriveError):
    """Persistence unavailable or write rejected. Detail stays server-side."""

    category = ErrorCategory.STORAGE_FAILURE
    status_code = 500
    default_message = "Storage operation failed"

    @property
    def public_message(self) -> str:
        return "Internal server error"


class InvalidRequest(DriveError):
    category = ErrorCategory.INVALID_REQUEST
    status_code = 400
    default_message = "Invalid request"
