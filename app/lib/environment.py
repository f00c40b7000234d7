"""
환경 감지 모듈

다층 환경 감지 로직:
- 명시적 환경 변수(ENVIRONMENT, NODE_ENV)를 최우선으로 판단
- 설정되지 않았으면 development 로 간주

지원 환경: development, test, production
"""

import os

from .logger import get_logger

logger = get_logger(__name__)

SUPPORTED_ENVIRONMENTS = ("development", "test", "production")

_ALIASES = {
    "prod": "production",
    "production": "production",
    "dev": "development",
    "development": "development",
    "local": "development",
    "test": "test",
    "testing": "test",
}


def get_environment() -> str:
    """
    현재 실행 환경 반환

    감지 우선순위:
    1. ENVIRONMENT 환경변수
    2. NODE_ENV 환경변수 (기존 배포 스크립트 호환)
    3. 기본값 development

    Returns:
        "development" | "test" | "production"
    """
    for var in ("ENVIRONMENT", "NODE_ENV"):
        value = os.getenv(var, "").strip().lower()
        if value in _ALIASES:
            return _ALIASES[value]
        if value:
            logger.warning("알 수 없는 환경 값, 무시합니다", extra={"variable": var, "value": value})

    return "development"


def is_production_environment() -> bool:
    """프로덕션 환경 여부"""
    return get_environment() == "production"
