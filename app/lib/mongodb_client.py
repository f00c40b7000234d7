"""
MongoDB 연결 및 관리 모듈

주요 기능:
- 주입된 설정으로 MongoDB 연결 생성 (지연 연결)
- 엔티티 타입별 컬렉션 조회
- 연결 상태 확인 (ping) 및 종료

의존성:
- pymongo: MongoDB 공식 Python 드라이버
- app.lib.logger: 구조화된 로깅
"""

from __future__ import annotations

from typing import Any

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConfigurationError, PyMongoError

from app.lib.errors import ErrorCode, StoreError
from app.lib.logger import get_logger

logger = get_logger(__name__)


class MongoDBClient:
    """
    MongoDB 클라이언트

    DI 컨테이너가 mongodb 설정 섹션을 주입하여 하나의 인스턴스를 생성합니다.
    실제 연결은 첫 컬렉션 접근 시점에 만들어집니다.

    Attributes:
        _config: mongodb 설정 섹션
        _client: MongoClient 인스턴스 (연결 전 None)
        _db: Database 인스턴스 (연결 전 None)
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self._config: dict[str, Any] = dict(config or {})
        self._client: MongoClient | None = None
        self._db: Database | None = None

    @property
    def database_name(self) -> str:
        return str(self._config.get("database", "content_sync"))

    def connect(self) -> Database:
        """
        MongoDB 연결 (이미 연결된 경우 기존 Database 반환)

        Raises:
            StoreError: URI 누락 또는 연결 설정 오류
        """
        if self._db is not None:
            return self._db

        uri = self._config.get("uri")
        if not uri:
            raise StoreError(
                ErrorCode.STORE_001,
                provider="mongodb",
                reason="mongodb.uri is not configured",
            )

        connection_options = {
            "maxPoolSize": self._config.get("max_pool_size", 10),
            "minPoolSize": self._config.get("min_pool_size", 1),
            "retryWrites": self._config.get("retry_writes", True),
            "serverSelectionTimeoutMS": int(self._config.get("timeout_ms", 5000)),
        }

        try:
            self._client = MongoClient(uri, **connection_options)
        except ConfigurationError as e:
            logger.error(
                "MongoDB 설정 오류",
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "suggestion": (
                        "1. MONGODB_URI 형식이 올바른지 확인하세요\n"
                        "2. 특수 문자가 포함된 비밀번호는 URL 인코딩이 필요합니다"
                    ),
                },
            )
            raise StoreError(
                ErrorCode.STORE_001,
                provider="mongodb",
                reason=str(e),
            ) from e

        self._db = self._client[self.database_name]
        logger.info(
            "MongoDB 클라이언트 생성",
            extra={
                "database": self.database_name,
                "max_pool_size": connection_options["maxPoolSize"],
                "timeout_ms": connection_options["serverSelectionTimeoutMS"],
            },
        )
        return self._db

    @property
    def db(self) -> Database | None:
        return self._db

    def get_collection(self, collection_name: str) -> Collection:
        """
        지정된 이름의 컬렉션 반환 (필요 시 연결)

        Example:
            users = mongodb_client.get_collection("users")
        """
        return self.connect()[collection_name]

    def collection_name_for(self, entity_type: str) -> str:
        """엔티티 타입 → 설정된 컬렉션 이름"""
        collections_config = self._config.get("collections", {}) or {}
        return str(collections_config.get(entity_type, entity_type))

    def ping(self) -> bool:
        """
        MongoDB 연결 상태 확인

        Returns:
            연결 성공 시 True, 실패 시 False
        """
        try:
            db = self.connect()
            db.client.admin.command("ping")
            return True
        except (PyMongoError, StoreError) as e:
            logger.error("MongoDB ping 실패", extra={"error": str(e)})
            return False

    def close(self) -> None:
        """MongoDB 연결 종료"""
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB 연결이 종료되었습니다.")
        self._client = None
        self._db = None
