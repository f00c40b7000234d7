"""
Root 설정 스키마

전체 애플리케이션 설정을 통합하고 검증하는 최상위 스키마입니다.
"""

from typing import Any

from pydantic import Field, ValidationError

from app.lib.logger import get_logger

from .base import BaseConfig
from .storage import MongoDBConfig, StoreConfig
from .sync import SourceConfig, SyncConfig

logger = get_logger(__name__)


class ServerConfig(BaseConfig):
    """HTTP 서버 설정"""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)


class LoggingConfig(BaseConfig):
    """로깅 설정 (실제 적용은 app.lib.logger 가 환경 변수 기준으로 수행)"""

    level: str = "INFO"


class RootConfig(BaseConfig):
    """
    전체 설정 통합 스키마

    각 섹션이 비어 있으면 스키마 기본값이 적용됩니다.
    """

    source: SourceConfig = Field(default_factory=SourceConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    mongodb: MongoDBConfig = Field(default_factory=MongoDBConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def validate_config(config_dict: dict[str, Any]) -> RootConfig:
    """
    설정 딕셔너리 검증

    Raises:
        ValidationError: 검증 실패 시
    """
    return RootConfig.model_validate(config_dict)


def validate_config_safe(
    config_dict: dict[str, Any],
    raise_on_error: bool = False,
) -> RootConfig | dict[str, Any]:
    """
    설정 검증 (Graceful Degradation)

    Args:
        config_dict: 원본 설정 딕셔너리
        raise_on_error: True면 검증 실패 시 예외 발생

    Returns:
        검증된 RootConfig, 또는 검증 실패 시 원본 dict
    """
    try:
        return validate_config(config_dict)
    except ValidationError as e:
        if raise_on_error:
            raise
        logger.warning(
            "설정 검증 실패, 원본 설정으로 계속합니다",
            extra={"error_count": e.error_count(), "errors": str(e)},
        )
        return config_dict
