"""에러 메시지 및 해결 방법 저장소.

모든 에러 메시지를 한국어와 영어로 저장하며,
각 에러에 대한 해결 방법도 제공합니다.
"""


# 에러 메시지 저장소: {error_code: {"ko": "한국어 메시지", "en": "English message"}}
ERROR_MESSAGES: dict[str, dict[str, str]] = {
    # SOURCE (외부 API)
    "SOURCE-001": {
        "ko": "외부 API 요청 시간 초과: {endpoint}",
        "en": "Request timeout: {endpoint}",
    },
    "SOURCE-002": {
        "ko": "외부 API 호스트를 찾을 수 없습니다: {endpoint}",
        "en": "External API host not found: {endpoint}",
    },
    "SOURCE-003": {
        "ko": "외부 API가 연결을 거부했습니다: {endpoint}",
        "en": "Connection refused by external API: {endpoint}",
    },
    "SOURCE-004": {
        "ko": "외부 API 네트워크 오류: {endpoint} ({reason})",
        "en": "External API network error: {endpoint} ({reason})",
    },
    "SOURCE-005": {
        "ko": "외부 API 요청 한도 초과: {endpoint}",
        "en": "Rate limit exceeded: {endpoint}",
    },
    "SOURCE-006": {
        "ko": "외부 API 서버 오류 (status={status}): {endpoint}",
        "en": "External API server error (status={status}): {endpoint}",
    },
    "SOURCE-007": {
        "ko": "리소스를 찾을 수 없습니다: {endpoint}",
        "en": "Resource not found: {endpoint}",
    },
    "SOURCE-008": {
        "ko": "외부 API 요청 오류 (status={status}): {endpoint}",
        "en": "External API request rejected (status={status}): {endpoint}",
    },
    "SOURCE-009": {
        "ko": "외부 API 응답 형식이 올바르지 않습니다: {endpoint}",
        "en": "Unexpected response format from external API: {endpoint}",
    },
    # SYNC (동기화)
    "SYNC-001": {
        "ko": "동기화가 이미 진행 중입니다",
        "en": "Sync operation already in progress",
    },
    "SYNC-002": {
        "ko": "외부 API에 접근할 수 없습니다: {reason}",
        "en": "External API is not accessible: {reason}",
    },
    "SYNC-003": {
        "ko": "{entity_type} 컬렉션 조회 실패: {reason}",
        "en": "Failed to fetch {entity_type} collection: {reason}",
    },
    "SYNC-004": {
        "ko": "{parent_type} (external_id={parent_external_id})를 찾을 수 없습니다",
        "en": "{parent_type} with external ID {parent_external_id} not found",
    },
    "SYNC-005": {
        "ko": "{entity_type} 레코드 형식 오류: {reason}",
        "en": "Malformed {entity_type} record: {reason}",
    },
    "SYNC-006": {
        "ko": "지원하지 않는 엔티티 타입입니다: {entity_type}",
        "en": "Unsupported entity type: {entity_type}",
    },
    "SYNC-007": {
        "ko": "댓글 깊이 제한 초과: {depth} (최대 {max_depth})",
        "en": "Maximum reply depth exceeded: {depth} (max {max_depth})",
    },
    "SYNC-008": {
        "ko": "{entity_type} 레코드 병합 실패: {reason}",
        "en": "Failed to merge {entity_type} record: {reason}",
    },
    # STORE (저장소)
    "STORE-001": {
        "ko": "저장소에 연결할 수 없습니다: {reason}",
        "en": "Cannot connect to store: {reason}",
    },
    "STORE-002": {
        "ko": "저장소 작업 실패 ({operation}): {reason}",
        "en": "Store operation failed ({operation}): {reason}",
    },
    "STORE-003": {
        "ko": "지원하지 않는 저장소 provider입니다: {provider}",
        "en": "Unsupported store provider: {provider}",
    },
    # CONFIG (설정)
    "CONFIG-001": {
        "ko": "설정 파일을 찾을 수 없습니다",
        "en": "Configuration file not found",
    },
    "CONFIG-002": {
        "ko": "설정 파일에 중복 키가 있습니다",
        "en": "Duplicate keys found in configuration file",
    },
    "CONFIG-003": {
        "ko": "설정 검증 실패: {validation_errors}",
        "en": "Configuration validation failed: {validation_errors}",
    },
    "CONFIG-004": {
        "ko": "설정 로드 중 오류 발생: {original_error}",
        "en": "Error while loading configuration: {original_error}",
    },
    # GENERAL
    "GENERAL-001": {
        "ko": "알 수 없는 오류가 발생했습니다",
        "en": "An unknown error occurred",
    },
}


# 해결 방법 저장소: {error_code: {"ko": [...], "en": [...]}}
ERROR_SOLUTIONS: dict[str, dict[str, list[str]]] = {
    "SOURCE-001": {
        "ko": ["SOURCE_API_TIMEOUT 값을 늘려보세요", "외부 API 상태를 확인하세요"],
        "en": ["Increase SOURCE_API_TIMEOUT", "Check the external API status"],
    },
    "SOURCE-002": {
        "ko": ["SOURCE_API_URL 호스트 이름을 확인하세요", "DNS 설정을 확인하세요"],
        "en": ["Verify the SOURCE_API_URL host name", "Check DNS settings"],
    },
    "SOURCE-003": {
        "ko": ["외부 API 서버가 실행 중인지 확인하세요", "방화벽/포트 설정을 확인하세요"],
        "en": ["Verify the external API server is running", "Check firewall and port settings"],
    },
    "SOURCE-005": {
        "ko": ["sync.batch_concurrency 값을 줄이세요", "잠시 후 다시 시도하세요"],
        "en": ["Lower sync.batch_concurrency", "Retry after a short wait"],
    },
    "SOURCE-006": {
        "ko": ["잠시 후 다시 시도하세요"],
        "en": ["Retry after a short wait"],
    },
    "SYNC-001": {
        "ko": ["진행 중인 동기화가 끝난 뒤 다시 요청하세요", "GET /api/sync/status 로 상태를 확인하세요"],
        "en": ["Retry after the running sync finishes", "Check GET /api/sync/status"],
    },
    "SYNC-002": {
        "ko": ["SOURCE_API_URL 설정을 확인하세요", "GET /api/sync/health 로 엔드포인트별 상태를 확인하세요"],
        "en": ["Verify SOURCE_API_URL", "Check per-endpoint health via GET /api/sync/health"],
    },
    "SYNC-004": {
        "ko": ["부모 엔티티를 먼저 동기화하세요 (users → posts → comments)"],
        "en": ["Sync the parent entity first (users → posts → comments)"],
    },
    "STORE-001": {
        "ko": ["MONGODB_URI 환경 변수를 확인하세요", "MongoDB 서버가 실행 중인지 확인하세요"],
        "en": ["Verify the MONGODB_URI environment variable", "Verify MongoDB is running"],
    },
    "STORE-003": {
        "ko": ["store.provider 는 mongodb 또는 memory 중 하나여야 합니다"],
        "en": ["store.provider must be either mongodb or memory"],
    },
    "CONFIG-001": {
        "ko": ["app/config/base.yaml 파일이 존재하는지 확인하세요"],
        "en": ["Verify app/config/base.yaml exists"],
    },
    "CONFIG-003": {
        "ko": ["설정 값의 타입과 범위를 확인하세요"],
        "en": ["Check configuration value types and ranges"],
    },
}


def get_message_template(error_code: str, lang: str = "ko") -> str:
    """에러 코드에 해당하는 메시지 템플릿 반환 (없으면 GENERAL-001)"""
    messages = ERROR_MESSAGES.get(error_code) or ERROR_MESSAGES["GENERAL-001"]
    return messages.get(lang) or messages["en"]


def get_solutions_list(error_code: str, lang: str = "ko") -> list[str]:
    """에러 코드에 해당하는 해결 방법 목록 반환"""
    solutions = ERROR_SOLUTIONS.get(error_code, {})
    return list(solutions.get(lang) or solutions.get("en") or [])
