"""
Configuration loader for the sync service
YAML 기반 계층적 설정 로더 + Pydantic 검증

로드 순서:
1. app/config/base.yaml (imports 지원)
2. app/config/environments/{environment}.yaml 깊은 병합
3. ${VAR} / ${VAR:-default} 치환
4. 환경 변수 오버라이드 (SOURCE_API_URL, MONGODB_URI 등)
5. Pydantic 검증 (app/config/schemas/)
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from ..config.schemas import detect_duplicate_keys_in_yaml, validate_config_safe
from .environment import get_environment
from .errors import ConfigError, ErrorCode
from .logger import get_logger

logger = get_logger(__name__)


class ConfigLoader:
    """설정 로더 클래스"""

    # 환경 변수 → 설정 경로 매핑
    ENV_MAPPINGS: dict[str, tuple[str, ...]] = {
        "PORT": ("server", "port"),
        "HOST": ("server", "host"),
        "SOURCE_API_URL": ("source", "base_url"),
        "EXTERNAL_API_URL": ("source", "base_url"),  # 별칭 지원
        "SOURCE_API_TIMEOUT": ("source", "timeout_seconds"),
        "SYNC_BATCH_CONCURRENCY": ("sync", "batch_concurrency"),
        "SYNC_MAX_RETRIES": ("sync", "max_retries"),
        "SYNC_RETRY_BASE_DELAY": ("sync", "retry_base_delay_seconds"),
        "AUTO_SYNC_ON_START": ("sync", "auto_sync_on_start"),
        "STORE_PROVIDER": ("store", "provider"),
        "MONGODB_URI": ("mongodb", "uri"),
        "MONGODB_DATABASE": ("mongodb", "database"),
        "MONGODB_DB_NAME": ("mongodb", "database"),  # 별칭 지원
        "MONGODB_TIMEOUT_MS": ("mongodb", "timeout_ms"),
        "LOG_LEVEL": ("logging", "level"),
    }

    def __init__(self, base_path: Path | None = None, environment: str | None = None) -> None:
        env_file = Path(__file__).parent.parent.parent / ".env"
        if env_file.exists():
            load_dotenv(env_file)
        self.base_path = base_path or Path(__file__).parent.parent / "config"
        self.environment = environment or get_environment()

        logger.debug("환경 감지", extra={"environment": self.environment})

    def load_config(
        self,
        validate: bool = True,
        raise_on_validation_error: bool = False,
    ) -> dict[str, Any]:
        """
        설정 로드 및 병합 (base.yaml + imports + 환경별 설정)

        Args:
            validate: Pydantic 검증 활성화 여부 (기본 True)
            raise_on_validation_error: 검증 실패 시 예외 발생 여부 (기본 False)
                - False: Graceful Degradation (검증 실패해도 원본 설정으로 동작)
                - True: 검증 실패 시 ConfigError 발생

        Returns:
            검증된 설정 딕셔너리 (검증 시 스키마 기본값이 채워짐)

        Raises:
            ConfigError: 설정 파일 없음 / 중복 키 / 검증 실패 / 로드 오류
        """
        try:
            config_file_path = self.base_path / "base.yaml"
            if not config_file_path.exists():
                raise ConfigError(
                    ErrorCode.CONFIG_001,
                    searched_paths=[str(config_file_path)],
                    environment=self.environment,
                )

            duplicates = detect_duplicate_keys_in_yaml(str(config_file_path))
            if duplicates:
                raise ConfigError(
                    ErrorCode.CONFIG_002,
                    config_file=str(config_file_path),
                    duplicate_keys=duplicates,
                )

            base_config = self._load_yaml_file(config_file_path)
            env_config_path = self.base_path / "environments" / f"{self.environment}.yaml"
            if env_config_path.exists():
                env_config = self._load_yaml_file(env_config_path)
                base_config = self._merge_configs(base_config, env_config)
            base_config = self._substitute_env_vars(base_config)
            base_config = self._apply_env_overrides(base_config)

            if not validate:
                return base_config

            result = validate_config_safe(base_config, raise_on_error=raise_on_validation_error)
            if hasattr(result, "model_dump"):
                return dict(result.model_dump(exclude_none=False))
            # 검증 실패로 dict 반환된 경우 (Graceful Degradation)
            return dict(result)

        except ConfigError:
            raise
        except ValidationError as e:
            raise ConfigError(
                ErrorCode.CONFIG_003,
                validation_errors=str(e),
                environment=self.environment,
            ) from e
        except Exception as e:
            raise ConfigError(
                ErrorCode.CONFIG_004,
                config_path=str(self.base_path),
                environment=self.environment,
                original_error=str(e),
            ) from e

    def _load_yaml_file(self, file_path: Path) -> dict[str, Any]:
        """
        YAML 파일 로드 (imports 지원)

        imports 키가 있으면 해당 파일들을 재귀적으로 로드하여 병합.
        상대 경로는 현재 파일 기준으로 해석.
        """
        if not file_path.exists():
            return {}
        with open(file_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        if "imports" in config:
            imports = config.pop("imports")
            for import_path in imports:
                if not Path(import_path).is_absolute():
                    import_file = file_path.parent / import_path
                else:
                    import_file = Path(import_path)
                imported_config = self._load_yaml_file(import_file)
                config = self._merge_configs(config, imported_config)
        return config

    def _merge_configs(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """설정 깊은 병합"""
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _apply_env_overrides(self, config: dict[str, Any]) -> dict[str, Any]:
        """환경 변수 오버라이드 적용"""
        for env_var, config_path in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is not None and value != "":
                self._set_nested_value(config, config_path, value)
        return config

    def _set_nested_value(self, config: dict[str, Any], path: tuple[str, ...], value: str) -> None:
        """중첩된 딕셔너리에 값 설정"""
        current = config
        for key in path[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]
        current[path[-1]] = self._convert_value(value)

    def _convert_value(self, value: str) -> Any:
        """환경 변수 값 타입 변환"""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass
        return value

    def _substitute_env_vars(self, config: dict[str, Any]) -> dict[str, Any]:
        """환경 변수 치환 적용"""

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):
                pattern = "\\$\\{([^}]+)\\}"

                def replace_env_var(match: re.Match[str]) -> str:
                    var_expr = match.group(1)
                    if ":-" in var_expr:
                        var_name, default_value = var_expr.split(":-", 1)
                        return os.getenv(var_name, default_value)
                    return os.getenv(var_expr, match.group(0))

                return re.sub(pattern, replace_env_var, value)
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            return value

        substituted = substitute_value(config)
        if not isinstance(substituted, dict):
            return config
        return substituted


def load_config(
    validate: bool = True,
    raise_on_validation_error: bool = False,
) -> dict[str, Any]:
    """
    전역 설정 로드 함수

    Examples:
        >>> config = load_config()
        >>> config["sync"]["batch_concurrency"]
        5
        >>> # 개발 환경: 엄격한 검증
        >>> config = load_config(raise_on_validation_error=True)
    """
    loader = ConfigLoader()
    return loader.load_config(
        validate=validate,
        raise_on_validation_error=raise_on_validation_error,
    )
