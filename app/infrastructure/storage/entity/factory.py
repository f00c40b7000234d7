"""
StoreFactory - 설정 기반 엔티티 저장소 생성 팩토리

store.provider 값(mongodb | memory)에 따라 IEntityStore 구현체를 선택합니다.
지연 로딩(Lazy Import)으로 선택되지 않은 provider 모듈은 로드하지 않습니다.
"""

from importlib import import_module
from typing import Any, TypedDict

from app.core.interfaces.storage import IEntityStore
from app.lib.errors import ErrorCode, StoreError
from app.lib.logger import get_logger
from app.lib.mongodb_client import MongoDBClient

logger = get_logger(__name__)


class ProviderInfo(TypedDict):
    """Provider 정보를 담는 타입"""
    class_path: str
    description: str


_DEFAULT_PROVIDERS: dict[str, ProviderInfo] = {
    "mongodb": {
        "class_path": "app.infrastructure.storage.entity.mongo_store.MongoEntityStore",
        "description": "MongoDB 엔티티 저장소 - external_id unique 인덱스",
    },
    "memory": {
        "class_path": "app.infrastructure.storage.entity.memory_store.InMemoryEntityStore",
        "description": "인메모리 저장소 - 로컬 실행 및 테스트용",
    },
}


class StoreFactory:
    """
    엔티티 저장소 팩토리 클래스

    사용 예시:
        store = StoreFactory.create({"provider": "memory"})
        store = StoreFactory.create({"provider": "mongodb"}, mongodb_client=client)
    """

    _providers: dict[str, ProviderInfo] = _DEFAULT_PROVIDERS.copy()

    @classmethod
    def get_available_providers(cls) -> list[str]:
        return list(cls._providers.keys())

    @classmethod
    def create(
        cls,
        store_config: dict[str, Any] | None = None,
        mongodb_client: MongoDBClient | None = None,
    ) -> IEntityStore:
        """
        설정에 맞는 저장소 인스턴스를 생성합니다.

        Args:
            store_config: store 설정 섹션 ({"provider": "..."})
            mongodb_client: mongodb provider 사용 시 필요한 클라이언트

        Raises:
            StoreError: 지원하지 않는 provider (STORE-003) 또는 mongodb 클라이언트 누락
        """
        provider = str((store_config or {}).get("provider", "mongodb"))
        if provider not in cls._providers:
            raise StoreError(ErrorCode.STORE_003, provider=provider)

        module_path, class_name = cls._providers[provider]["class_path"].rsplit(".", 1)
        store_class = getattr(import_module(module_path), class_name)

        if provider == "mongodb":
            if mongodb_client is None:
                raise StoreError(
                    ErrorCode.STORE_001,
                    provider=provider,
                    reason="mongodb client is not configured",
                )
            collection_names = {
                entity_type: mongodb_client.collection_name_for(entity_type)
                for entity_type in ("users", "posts", "comments")
            }
            instance: IEntityStore = store_class(mongodb_client, collection_names)
        else:
            instance = store_class()

        logger.info(f"StoreFactory: '{provider}' 저장소 생성 완료")
        return instance
