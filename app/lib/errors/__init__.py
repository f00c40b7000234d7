"""에러 처리 라이브러리.

동기화 엔진의 에러 코드, 메시지, 예외 클래스를 제공합니다.

주요 컴포넌트:
- ErrorCode: 에러 코드 Enum ({DOMAIN}-{NUMBER})
- SyncErrorKind: 결과 값에 실리는 태그된 에러 종류
- 예외 클래스: SyncException 및 도메인별 예외 클래스
- 포맷팅 함수: 에러 메시지 및 응답 생성 함수
- 양언어 지원: 영어(기본) 및 한국어 메시지

사용 예시:
    >>> from app.lib.errors import ErrorCode, SourceNotFoundError, get_error_message
    >>>
    >>> raise SourceNotFoundError(endpoint="/users/99", status=404)
    >>>
    >>> get_error_message("SYNC-001", lang="ko")
    "동기화가 이미 진행 중입니다"
"""

from app.lib.errors.codes import ErrorCode, SyncErrorKind, kind_for_code
from app.lib.errors.exceptions import (
    ConfigError,
    SourceAPIError,
    SourceClientError,
    SourceConnectivityError,
    SourceNotFoundError,
    SourceRateLimitError,
    SourceResponseError,
    SourceServerError,
    SourceTransportError,
    StoreError,
    SyncError,
    SyncException,
    get_exception_class,
    wrap_exception,
)
from app.lib.errors.formatter import (
    format_error_response,
    get_all_error_codes,
    get_default_language,
    get_error_codes_by_domain,
    get_error_message,
    get_error_solutions,
)

__all__ = [
    # 에러 코드
    "ErrorCode",
    "SyncErrorKind",
    "kind_for_code",
    # 예외 클래스
    "SyncException",
    "SourceAPIError",
    "SourceTransportError",
    "SourceRateLimitError",
    "SourceServerError",
    "SourceNotFoundError",
    "SourceClientError",
    "SourceResponseError",
    "SourceConnectivityError",
    "SyncError",
    "StoreError",
    "ConfigError",
    # 유틸리티 함수
    "get_exception_class",
    "wrap_exception",
    # 포맷팅 함수
    "get_error_message",
    "get_error_solutions",
    "format_error_response",
    "get_default_language",
    "get_all_error_codes",
    "get_error_codes_by_domain",
]
