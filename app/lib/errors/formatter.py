"""에러 메시지 포맷팅 유틸리티.

에러 메시지와 해결 방법을 가져오고 포맷팅하는 함수들을 제공합니다.
"""

import os
from typing import Any

from app.lib.errors.messages import (
    ERROR_MESSAGES,
    get_message_template,
    get_solutions_list,
)


def get_default_language() -> str:
    """기본 언어 가져오기.

    환경변수 ERROR_LANGUAGE로 기본 언어 설정 가능.
    설정되지 않은 경우 영어("en")를 기본값으로 사용.

    Returns:
        언어 코드 ("ko" 또는 "en")
    """
    lang = os.getenv("ERROR_LANGUAGE", "en")
    return lang if lang in ("ko", "en") else "en"


def get_error_message(error_code: str, lang: str | None = None, **kwargs: Any) -> str:
    """에러 메시지 가져오기 (포맷팅 포함).

    Args:
        error_code: 에러 코드 (예: "SYNC-004")
        lang: 언어 코드 ("ko" 또는 "en"). None이면 기본 언어 사용
        **kwargs: 메시지 포맷팅에 사용할 키워드 인자

    Returns:
        포맷팅된 에러 메시지

    Example:
        >>> get_error_message("SYNC-004", lang="en", parent_type="User", parent_external_id=7)
        "User with external ID 7 not found"
    """
    if lang is None:
        lang = get_default_language()

    template = get_message_template(error_code, lang)

    if kwargs:
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError) as e:
            missing_key = str(e).strip("'")
            return f"{template} (formatting error: {missing_key} missing)"

    return template


def get_error_solutions(error_code: str, lang: str | None = None) -> list[str]:
    """에러 해결 방법 가져오기.

    Args:
        error_code: 에러 코드
        lang: 언어 코드 ("ko" 또는 "en"). None이면 기본 언어 사용

    Returns:
        에러 해결 방법 리스트 (등록된 방법이 없으면 빈 리스트)
    """
    if lang is None:
        lang = get_default_language()

    return get_solutions_list(error_code, lang)


def format_error_response(
    error_code: str,
    lang: str | None = None,
    include_solutions: bool = True,
    **context: Any,
) -> dict[str, Any]:
    """에러 응답 JSON 생성.

    Args:
        error_code: 에러 코드 (예: "SYNC-001")
        lang: 언어 코드 ("ko" 또는 "en"). None이면 기본 언어 사용
        include_solutions: 해결 방법 포함 여부
        **context: 메시지 포맷팅에 사용할 키워드 인자

    Returns:
        에러 응답 딕셔너리

    Example:
        >>> format_error_response("SYNC-001", lang="en")
        {
            "error_code": "SYNC-001",
            "message": "Sync operation already in progress",
            "solutions": [
                "Retry after the running sync finishes",
                "Check GET /api/sync/status"
            ]
        }
    """
    if lang is None:
        lang = get_default_language()

    response: dict[str, Any] = {
        "error_code": error_code,
        "message": get_error_message(error_code, lang, **context),
    }

    if include_solutions:
        response["solutions"] = get_error_solutions(error_code, lang)

    return response


def get_all_error_codes() -> list[str]:
    """모든 에러 코드 목록 가져오기."""
    return sorted(ERROR_MESSAGES.keys())


def get_error_codes_by_domain(domain: str) -> list[str]:
    """특정 도메인의 에러 코드 목록 가져오기.

    Example:
        >>> get_error_codes_by_domain("STORE")
        ['STORE-001', 'STORE-002', 'STORE-003']
    """
    prefix = f"{domain}-"
    return sorted([code for code in ERROR_MESSAGES.keys() if code.startswith(prefix)])
