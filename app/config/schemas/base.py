"""
Pydantic 기본 설정 클래스

모든 설정 스키마의 부모 클래스입니다.
공통 validators와 설정을 정의합니다.
"""

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class BaseConfig(BaseModel):
    """
    모든 설정 스키마의 기본 클래스

    기능:
    - 환경 변수 자동 치환 (${ENV_VAR} 형식)
    - 추가 필드 허용 (하위 호환성)
    - 할당 시 재검증
    """

    model_config = ConfigDict(
        extra="allow",
        validate_assignment=True,
        populate_by_name=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def substitute_env_vars(cls, value: Any) -> Any:
        """
        환경 변수 치환 validator

        YAML에서 ${ENV_VAR} 또는 ${ENV_VAR:-default} 형식을 지원합니다.

        Examples:
            base_url: "${SOURCE_API_URL:-https://jsonplaceholder.typicode.com}"
            timeout_ms: "${MONGODB_TIMEOUT_MS:-5000}"
        """
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_expr = value[2:-1]

            if ":-" in env_expr:
                env_name, default_value = env_expr.split(":-", 1)
                return os.getenv(env_name, default_value)

            return os.getenv(env_expr, "")

        return value

    def to_dict(self) -> dict[str, Any]:
        """
        Pydantic 모델을 dict로 변환

        DI Container(providers.Configuration)에 주입할 때 사용합니다.
        """
        return self.model_dump(by_alias=True, exclude_none=True)
