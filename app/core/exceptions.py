"""
Domain exceptions.

    BaseApplicationError
    ├── ValidationError        malformed input, e.g. a bad conversation key
    ├── PermissionDeniedError  caller may not read or write the resource
    └── ConflictError          operation does not fit the current state

Code below the service layer raises these. Services turn the expected ones
into ServiceResult failures and views turn either into HTTP responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Error carrying a message, a machine-readable code and optional details.

    Subclasses only change ``default_error_code``.
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """
        Response body for the error, for example::

            {"error": "Conversation key is malformed",
             "error_code": "INVALID_CONVERSATION_KEY",
             "details": {"key": "abc"}}
        """
        body: dict[str, Any] = {"error": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ValidationError(BaseApplicationError):
    default_error_code: str = "VALIDATION_ERROR"


class PermissionDeniedError(BaseApplicationError):
    """
    The caller has no access.

    Live subscriptions treat this as a normal end of stream: a viewer who
    signs out mid-stream just stops receiving events.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """The requested transition is not possible from the current state."""

    default_error_code: str = "CONFLICT"
