"""에러 코드 정의 모듈.

동기화 엔진의 모든 에러 코드를 Enum으로 정의합니다.
도메인별로 그룹화되어 있어 에러 분류 및 추적이 용이합니다.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """동기화 엔진 에러 코드 Enum.

    형식: {DOMAIN}-{NUMBER}
    - SOURCE: 외부 소스 API 통신
    - SYNC: 동기화 실행/병합
    - STORE: 로컬 저장소
    - CONFIG: 설정 관리
    - GENERAL: 일반 오류
    """

    # SOURCE (외부 API) - 9개
    SOURCE_001 = "SOURCE-001"  # 요청 타임아웃
    SOURCE_002 = "SOURCE-002"  # 호스트를 찾을 수 없음
    SOURCE_003 = "SOURCE-003"  # 연결 거부
    SOURCE_004 = "SOURCE-004"  # 기타 네트워크 오류
    SOURCE_005 = "SOURCE-005"  # Rate Limit (429)
    SOURCE_006 = "SOURCE-006"  # 서버 에러 (5xx)
    SOURCE_007 = "SOURCE-007"  # 리소스 없음 (404)
    SOURCE_008 = "SOURCE-008"  # 기타 클라이언트 에러 (4xx)
    SOURCE_009 = "SOURCE-009"  # 응답 형식 오류 (JSON 아님 / 배열 아님)

    # SYNC (동기화) - 8개
    SYNC_001 = "SYNC-001"  # 이미 동기화 진행 중
    SYNC_002 = "SYNC-002"  # 헬스 체크 실패 (소스 접근 불가)
    SYNC_003 = "SYNC-003"  # 단계별 컬렉션 조회 실패
    SYNC_004 = "SYNC-004"  # 부모 엔티티 없음 (MissingDependency)
    SYNC_005 = "SYNC-005"  # 외부 레코드 형식 오류
    SYNC_006 = "SYNC-006"  # 지원하지 않는 엔티티 타입
    SYNC_007 = "SYNC-007"  # 댓글 최대 깊이 초과
    SYNC_008 = "SYNC-008"  # 예상치 못한 레코드 병합 실패

    # STORE (저장소) - 3개
    STORE_001 = "STORE-001"  # 저장소 연결 불가
    STORE_002 = "STORE-002"  # 저장소 작업 실패
    STORE_003 = "STORE-003"  # 지원하지 않는 저장소 provider

    # CONFIG (설정) - 4개
    CONFIG_001 = "CONFIG-001"  # 설정 파일 없음
    CONFIG_002 = "CONFIG-002"  # YAML 중복 키
    CONFIG_003 = "CONFIG-003"  # 설정 검증 실패
    CONFIG_004 = "CONFIG-004"  # 설정 로드 중 예외

    # GENERAL (일반) - 1개
    GENERAL_001 = "GENERAL-001"  # 알 수 없는 오류


class SyncErrorKind(str, Enum):
    """결과 값에 태그로 실리는 에러 종류.

    에러 코드가 "무엇이 실패했는지"를 식별한다면,
    에러 종류는 "호출자가 어떻게 분기해야 하는지"를 나타냅니다.
    """

    CONNECTIVITY = "connectivity"
    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NOT_FOUND = "not_found"
    CLIENT_ERROR = "client_error"
    INVALID_RESPONSE = "invalid_response"
    MISSING_DEPENDENCY = "missing_dependency"
    INVALID_RECORD = "invalid_record"
    ALREADY_IN_PROGRESS = "already_in_progress"
    UNKNOWN_ENTITY = "unknown_entity"
    STORE_ERROR = "store_error"
    CONFIG_ERROR = "config_error"
    INTERNAL = "internal"


_KIND_BY_CODE: dict[str, SyncErrorKind] = {
    ErrorCode.SOURCE_001.value: SyncErrorKind.TRANSPORT,
    ErrorCode.SOURCE_002.value: SyncErrorKind.TRANSPORT,
    ErrorCode.SOURCE_003.value: SyncErrorKind.TRANSPORT,
    ErrorCode.SOURCE_004.value: SyncErrorKind.TRANSPORT,
    ErrorCode.SOURCE_005.value: SyncErrorKind.RATE_LIMITED,
    ErrorCode.SOURCE_006.value: SyncErrorKind.SERVER_ERROR,
    ErrorCode.SOURCE_007.value: SyncErrorKind.NOT_FOUND,
    ErrorCode.SOURCE_008.value: SyncErrorKind.CLIENT_ERROR,
    ErrorCode.SOURCE_009.value: SyncErrorKind.INVALID_RESPONSE,
    ErrorCode.SYNC_001.value: SyncErrorKind.ALREADY_IN_PROGRESS,
    ErrorCode.SYNC_002.value: SyncErrorKind.CONNECTIVITY,
    ErrorCode.SYNC_003.value: SyncErrorKind.CONNECTIVITY,
    ErrorCode.SYNC_004.value: SyncErrorKind.MISSING_DEPENDENCY,
    ErrorCode.SYNC_005.value: SyncErrorKind.INVALID_RECORD,
    ErrorCode.SYNC_006.value: SyncErrorKind.UNKNOWN_ENTITY,
    ErrorCode.SYNC_007.value: SyncErrorKind.INVALID_RECORD,
    ErrorCode.SYNC_008.value: SyncErrorKind.INTERNAL,
    ErrorCode.STORE_001.value: SyncErrorKind.STORE_ERROR,
    ErrorCode.STORE_002.value: SyncErrorKind.STORE_ERROR,
    ErrorCode.STORE_003.value: SyncErrorKind.CONFIG_ERROR,
    ErrorCode.CONFIG_001.value: SyncErrorKind.CONFIG_ERROR,
    ErrorCode.CONFIG_002.value: SyncErrorKind.CONFIG_ERROR,
    ErrorCode.CONFIG_003.value: SyncErrorKind.CONFIG_ERROR,
    ErrorCode.CONFIG_004.value: SyncErrorKind.CONFIG_ERROR,
}


def kind_for_code(error_code: str | ErrorCode) -> SyncErrorKind:
    """에러 코드에 대응하는 에러 종류 반환 (미등록 코드는 INTERNAL)"""
    code_str = error_code.value if isinstance(error_code, ErrorCode) else error_code
    return _KIND_BY_CODE.get(code_str, SyncErrorKind.INTERNAL)
