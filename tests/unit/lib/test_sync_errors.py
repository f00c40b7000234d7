"""
에러 시스템 단위 테스트

에러 코드 → 에러 종류 매핑, 양언어 메시지, 예외 래핑.
"""

import pytest

from app.lib.errors import (
    ErrorCode,
    SourceNotFoundError,
    SourceTransportError,
    StoreError,
    SyncErrorKind,
    SyncException,
    format_error_response,
    get_error_message,
    kind_for_code,
    wrap_exception,
)


class TestErrorKinds:
    """에러 종류 매핑 테스트"""

    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            (ErrorCode.SYNC_001, SyncErrorKind.ALREADY_IN_PROGRESS),
            (ErrorCode.SYNC_002, SyncErrorKind.CONNECTIVITY),
            (ErrorCode.SYNC_004, SyncErrorKind.MISSING_DEPENDENCY),
            (ErrorCode.SYNC_005, SyncErrorKind.INVALID_RECORD),
            (ErrorCode.SOURCE_005, SyncErrorKind.RATE_LIMITED),
            (ErrorCode.STORE_002, SyncErrorKind.STORE_ERROR),
            ("UNKNOWN-999", SyncErrorKind.INTERNAL),
        ],
    )
    def test_kind_for_code(self, code, kind):
        assert kind_for_code(code) == kind

    def test_transport_reason_selects_code(self):
        assert SourceTransportError(endpoint="/x", reason="timeout").error_code == "SOURCE-001"
        assert SourceTransportError(endpoint="/x", reason="host_not_found").error_code == "SOURCE-002"
        assert SourceTransportError(endpoint="/x", reason="weird").error_code == "SOURCE-004"


class TestMessages:
    """양언어 메시지 테스트"""

    def test_english_message(self):
        message = get_error_message("SYNC-004", lang="en", parent_type="User", parent_external_id=7)

        assert message == "User with external ID 7 not found"

    def test_korean_message(self):
        assert get_error_message("SYNC-001", lang="ko") == "동기화가 이미 진행 중입니다"

    def test_missing_context_does_not_raise(self):
        message = get_error_message("SYNC-004", lang="en", parent_type="User")

        assert "formatting error" in message

    def test_exception_message_and_dict(self):
        exc = SourceNotFoundError(endpoint="/posts/9", status=404)

        body = exc.to_dict(lang="en")

        assert str(exc) == "Resource not found: /posts/9"
        assert body["error_code"] == "SOURCE-007"
        assert body["kind"] == "not_found"

    def test_format_error_response_has_code(self):
        response = format_error_response("STORE-003", lang="en", provider="cassandra")

        assert response["error_code"] == "STORE-003"
        assert "cassandra" in response["message"]


class TestWrapException:
    """예외 래핑 테스트"""

    def test_wraps_into_domain_class(self):
        wrapped = wrap_exception(RuntimeError("disk full"), ErrorCode.STORE_002, operation="insert", reason="x")

        assert isinstance(wrapped, StoreError)
        assert wrapped.context["original_error_type"] == "RuntimeError"

    def test_sync_exception_passes_through(self):
        original = SyncException(ErrorCode.SYNC_006, entity_type="albums")

        assert wrap_exception(original) is original
