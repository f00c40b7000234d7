"""커스텀 예외 클래스 모듈.

동기화 엔진의 모든 커스텀 예외 클래스를 정의합니다.
각 예외는 에러 코드와 컨텍스트 정보를 포함하며,
양언어 에러 응답을 생성할 수 있습니다.

예외는 외부 API 클라이언트, 저장소, 설정 계층 내부에서만 발생하며
오케스트레이터 경계에서 태그된 결과 값(SyncErrorKind)으로 변환됩니다.
"""

from typing import Any

from app.lib.errors.codes import ErrorCode, SyncErrorKind, kind_for_code
from app.lib.errors.formatter import format_error_response


class SyncException(Exception):
    """동기화 엔진 기본 예외 클래스.

    Attributes:
        error_code: 에러 코드 (예: "SOURCE-005")
        context: 에러 컨텍스트 정보 (메시지 포맷팅에 사용)
        retryable: 백오프 재시도 대상 여부
    """

    retryable: bool = False

    def __init__(self, error_code: str | ErrorCode, **context: Any) -> None:
        self.error_code = error_code.value if isinstance(error_code, ErrorCode) else error_code
        self.context = context

        # Exception 메시지는 영어 기본값 (로그 검색용)
        message = format_error_response(
            self.error_code, lang="en", include_solutions=False, **context
        )["message"]
        super().__init__(message)

    @property
    def kind(self) -> SyncErrorKind:
        return kind_for_code(self.error_code)

    def to_dict(self, lang: str = "en", include_solutions: bool = True) -> dict[str, Any]:
        """에러 응답 딕셔너리로 변환.

        Example:
            >>> exc = SourceRateLimitError(endpoint="/posts")
            >>> exc.to_dict()["error_code"]
            "SOURCE-005"
        """
        response = format_error_response(
            self.error_code,
            lang=lang,
            include_solutions=include_solutions,
            **self.context,
        )
        response["kind"] = self.kind.value
        return response


# ============================================================================
# 외부 API 예외
# ============================================================================


class SourceAPIError(SyncException):
    """외부 소스 API 기본 에러"""

    default_code: ErrorCode = ErrorCode.SOURCE_004

    def __init__(
        self,
        error_code: str | ErrorCode | None = None,
        *,
        endpoint: str = "",
        status: int | None = None,
        **context: Any,
    ) -> None:
        self.endpoint = endpoint
        self.status = status
        context.setdefault("reason", "unknown")
        super().__init__(
            error_code or self.default_code, endpoint=endpoint, status=status, **context
        )


class SourceTransportError(SourceAPIError):
    """전송 계층 에러 (타임아웃, 호스트 없음, 연결 거부)"""

    retryable = True

    _CODE_BY_REASON = {
        "timeout": ErrorCode.SOURCE_001,
        "host_not_found": ErrorCode.SOURCE_002,
        "connection_refused": ErrorCode.SOURCE_003,
    }

    def __init__(self, *, endpoint: str = "", reason: str = "network", **context: Any) -> None:
        self.reason = reason
        code = self._CODE_BY_REASON.get(reason, ErrorCode.SOURCE_004)
        super().__init__(code, endpoint=endpoint, reason=reason, **context)


class SourceRateLimitError(SourceAPIError):
    """API Rate Limit 초과 에러 (429)"""

    default_code = ErrorCode.SOURCE_005
    retryable = True


class SourceServerError(SourceAPIError):
    """외부 API 서버 에러 (5xx)"""

    default_code = ErrorCode.SOURCE_006
    retryable = True


class SourceNotFoundError(SourceAPIError):
    """리소스를 찾을 수 없음 (404)"""

    default_code = ErrorCode.SOURCE_007


class SourceClientError(SourceAPIError):
    """그 외 4xx 응답"""

    default_code = ErrorCode.SOURCE_008


class SourceResponseError(SourceAPIError):
    """응답 본문이 기대한 형식이 아님"""

    default_code = ErrorCode.SOURCE_009


class SourceConnectivityError(SyncException):
    """헬스 체크 또는 단계별 컬렉션 조회 실패 (실행 중단 사유)"""

    def __init__(self, error_code: str | ErrorCode = ErrorCode.SYNC_002, **context: Any) -> None:
        super().__init__(error_code, **context)


# ============================================================================
# 기타 도메인 예외
# ============================================================================


class SyncError(SyncException):
    """동기화 요청 자체가 잘못된 경우 (예: 알 수 없는 엔티티 타입)"""

    pass


class StoreError(SyncException):
    """로컬 저장소 관련 예외."""

    pass


class ConfigError(SyncException):
    """설정 관련 예외."""

    pass


def get_exception_class(error_code: str | ErrorCode) -> type[SyncException]:
    """에러 코드에 해당하는 예외 클래스 반환.

    Example:
        >>> get_exception_class("STORE-002").__name__
        'StoreError'
    """
    code_str = error_code.value if isinstance(error_code, ErrorCode) else error_code
    domain = code_str.split("-")[0]

    domain_map: dict[str, type[SyncException]] = {
        "SOURCE": SourceAPIError,
        "SYNC": SyncError,
        "STORE": StoreError,
        "CONFIG": ConfigError,
    }

    return domain_map.get(domain, SyncException)


def wrap_exception(
    error: Exception,
    default_code: str | ErrorCode = ErrorCode.GENERAL_001,
    **context: Any,
) -> SyncException:
    """기존 예외를 SyncException으로 래핑.

    Example:
        >>> try:
        ...     collection.insert_one(doc)
        ... except PyMongoError as e:
        ...     raise wrap_exception(e, ErrorCode.STORE_002, operation="insert", reason=str(e))
    """
    if isinstance(error, SyncException):
        return error

    code_str = default_code.value if isinstance(default_code, ErrorCode) else default_code

    context["original_error_type"] = type(error).__name__
    context["original_error_message"] = str(error)

    exc_class = get_exception_class(code_str)
    return exc_class(code_str, **context)
