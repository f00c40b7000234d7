"""
외부 소스 / 동기화 설정 스키마
"""

from pydantic import Field, field_validator

from .base import BaseConfig


class SourceConfig(BaseConfig):
    """외부 소스 API 설정"""

    base_url: str = Field(
        default="https://jsonplaceholder.typicode.com",
        description="외부 API 기본 URL",
    )
    timeout_seconds: float = Field(default=5.0, gt=0, le=120, description="요청 타임아웃 (초)")
    user_agent: str = Field(default="content-sync/1.0.0")
    health_endpoints: list[str] = Field(
        default_factory=lambda: ["/users/1", "/posts/1", "/comments/1"],
        min_length=1,
        description="헬스 체크 대상 엔드포인트",
    )
    health_timeout_seconds: float = Field(default=10.0, gt=0, le=300)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://: {v}")
        return v.rstrip("/")


class SyncConfig(BaseConfig):
    """동기화 실행 설정"""

    batch_concurrency: int = Field(default=5, ge=1, le=100, description="배치 그룹 크기")
    max_retries: int = Field(default=3, ge=1, le=10, description="요청당 최대 시도 횟수")
    retry_base_delay_seconds: float = Field(default=1.0, ge=0, le=60)
    auto_sync_on_start: bool = Field(default=False)
    max_comment_depth: int = Field(default=10, ge=0, le=50)
