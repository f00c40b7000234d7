"""
저장소 설정 스키마 (store provider + MongoDB)
"""

from typing import Literal

from pydantic import Field

from .base import BaseConfig


class StoreConfig(BaseConfig):
    """저장소 provider 선택"""

    provider: Literal["mongodb", "memory"] = Field(default="mongodb")


class MongoCollectionsConfig(BaseConfig):
    """엔티티 타입별 컬렉션 이름"""

    users: str = "users"
    posts: str = "posts"
    comments: str = "comments"


class MongoDBConfig(BaseConfig):
    """MongoDB 연결 설정"""

    uri: str = Field(default="mongodb://localhost:27017")
    database: str = Field(default="content_sync")
    timeout_ms: int = Field(default=5000, ge=100, le=120000)
    max_pool_size: int = Field(default=10, ge=1, le=500)
    min_pool_size: int = Field(default=1, ge=0, le=100)
    retry_writes: bool = True
    collections: MongoCollectionsConfig = Field(default_factory=MongoCollectionsConfig)
