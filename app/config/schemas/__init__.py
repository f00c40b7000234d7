"""
Pydantic 기반 설정 스키마 모듈

YAML 설정 파일의 타입 안정성과 검증을 제공합니다.

주요 기능:
- 설정값 타입 검증 (시작 시 자동 검증)
- 환경 변수 자동 바인딩 (${VAR:-default})
- 범위 및 제약 조건 검증

사용법:
    from app.config.schemas import validate_config

    validated = validate_config(config_dict)
    validated.sync.batch_concurrency
"""

import re

from .base import BaseConfig
from .root import LoggingConfig, RootConfig, ServerConfig, validate_config, validate_config_safe
from .storage import MongoCollectionsConfig, MongoDBConfig, StoreConfig
from .sync import SourceConfig, SyncConfig


def detect_duplicate_keys_in_yaml(yaml_path: str) -> list[str]:
    """
    YAML 파일에서 중복된 최상위 키 탐지

    Args:
        yaml_path: YAML 파일 경로

    Returns:
        중복된 키 목록 (예: ["sync (첫 번째: 1줄, 중복: 5줄)"])
    """
    with open(yaml_path, encoding="utf-8") as f:
        lines = f.readlines()

    # 최상위 키만 추출 (들여쓰기 없는 키)
    top_level_pattern = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*):\s*")
    keys_seen: dict[str, int] = {}
    duplicates = []

    for i, line in enumerate(lines, start=1):
        match = top_level_pattern.match(line)
        if match:
            key = match.group(1)
            if key in keys_seen:
                duplicates.append(f"{key} (첫 번째: {keys_seen[key]}줄, 중복: {i}줄)")
            else:
                keys_seen[key] = i

    return duplicates


__all__ = [
    "BaseConfig",
    "RootConfig",
    "SourceConfig",
    "SyncConfig",
    "StoreConfig",
    "MongoDBConfig",
    "MongoCollectionsConfig",
    "ServerConfig",
    "LoggingConfig",
    "validate_config",
    "validate_config_safe",
    "detect_duplicate_keys_in_yaml",
]
