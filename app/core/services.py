"""
Service layer building blocks.

Business logic lives in service classes made of classmethods. Each one
returns a ServiceResult: expected outcomes such as "you cannot follow
yourself" come back as failures with an error_code, while bugs and database
outages surface as exceptions (or via handle_exception where a caller must
keep going).

Example:
    class FollowService(BaseService):
        @classmethod
        def follow_user(cls, requester, target) -> ServiceResult[str]:
            if requester.pk == target.pk:
                return ServiceResult.failure(
                    "You cannot follow yourself", error_code="SELF_FOLLOW"
                )
            with cls.atomic():
                ...
            return ServiceResult.success(FollowStatus.PENDING)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call.

    ``data`` is set on success. On failure ``error`` holds a readable message,
    ``error_code`` a stable code for clients and ``errors`` optional
    per-field messages from form-style validation.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        return cls(success=False, error=error, error_code=error_code, errors=errors)

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Failure built from a caught exception.

        BaseApplicationError subclasses contribute their message and code;
        other exceptions are coded by their upper-cased class name.
        """
        code = error_code or getattr(exc, "error_code", None)
        return cls(
            success=False,
            error=getattr(exc, "message", str(exc)),
            error_code=code or type(exc).__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """Body for an API response; empty optional keys are left out."""
        if self.success:
            return {"success": True, "data": self.data}

        body: dict[str, Any] = {"success": False, "error": self.error}
        if self.error_code:
            body["error_code"] = self.error_code
        if self.errors:
            body["errors"] = self.errors
        return body

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """Shared helpers for stateless service classes."""

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Iterator[None]:
        """Run the block in one database transaction."""
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """Log ``exc`` with its traceback and turn it into a failed result."""
        cls.get_logger().log(
            log_level, f"{context}: {exc}" if context else str(exc), exc_info=True
        )
        return ServiceResult.from_exception(exc)
