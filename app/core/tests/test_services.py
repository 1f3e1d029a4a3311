"""
Tests for ServiceResult and BaseService.
"""

import logging

from core.exceptions import ConflictError, PermissionDeniedError
from core.services import BaseService, ServiceResult


class TestServiceResult:
    def test_success_is_truthy(self):
        result = ServiceResult.success({"id": 1})

        assert result
        assert result.data == {"id": 1}
        assert result.to_response() == {"success": True, "data": {"id": 1}}

    def test_failure_response_carries_code_and_field_errors(self):
        result = ServiceResult.failure(
            "Invalid profile", error_code="INVALID_PROFILE", errors={"username": ["taken"]}
        )

        assert not result
        assert result.to_response() == {
            "success": False,
            "error": "Invalid profile",
            "error_code": "INVALID_PROFILE",
            "errors": {"username": ["taken"]},
        }

    def test_from_application_error_keeps_its_code(self):
        exc = ConflictError("No pending follow request", error_code="NO_PENDING_REQUEST")

        result = ServiceResult.from_exception(exc)

        assert result.error == "No pending follow request"
        assert result.error_code == "NO_PENDING_REQUEST"

    def test_from_plain_exception_uses_class_name(self):
        result = ServiceResult.from_exception(RuntimeError("boom"))

        assert result.error == "boom"
        assert result.error_code == "RUNTIMEERROR"


class TestBaseService:
    def test_logger_named_after_service(self):
        class ExampleService(BaseService):
            pass

        assert ExampleService.get_logger().name.endswith("ExampleService")

    def test_handle_exception_logs_and_returns_failure(self, caplog):
        exc = PermissionDeniedError("Viewer signed out", error_code="VIEWER_INACTIVE")

        with caplog.at_level(logging.ERROR):
            result = BaseService.handle_exception(exc, "Delivering event")

        assert result.error_code == "VIEWER_INACTIVE"
        assert "Delivering event" in caplog.text
