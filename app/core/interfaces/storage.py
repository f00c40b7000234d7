"""
Storage Interfaces

동기화 엔진이 사용하는 로컬 저장소 추상화 인터페이스 정의.
이 인터페이스를 통해 동기화 로직은 구체적인 DB 구현체(MongoDB, 인메모리)로부터 분리됩니다.

엔티티 타입: "users", "posts", "comments"
필터: 필드 동등 비교 dict, 값 위치에 {"$in": [...]} / {"$nin": [...]} 허용
"""
from abc import ABC, abstractmethod
from typing import Any

ENTITY_TYPES: tuple[str, ...] = ("users", "posts", "comments")


class IEntityStore(ABC):
    """
    엔티티 저장소 인터페이스

    모든 문서는 저장소가 부여한 문자열 `id` 와 선택적 `external_id` 를 가집니다.
    (엔티티 타입, external_id) 조합은 저장소 안에서 유일합니다.
    """

    async def ensure_indexes(self) -> None:
        """저장소 인덱스 준비 (필요한 구현체만 재정의)"""
        return None

    @abstractmethod
    async def find_by_external_id(self, entity_type: str, external_id: int) -> dict[str, Any] | None:
        """external_id 로 단건 조회"""
        pass

    @abstractmethod
    async def find_by_id(self, entity_type: str, entity_id: str) -> dict[str, Any] | None:
        """저장소 id 로 단건 조회"""
        pass

    @abstractmethod
    async def upsert(self, entity_type: str, external_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        """external_id 기준 생성 또는 갱신 후 저장된 문서 반환"""
        pass

    @abstractmethod
    async def update_fields(self, entity_type: str, entity_id: str, fields: dict[str, Any]) -> bool:
        """저장소 id 기준 일부 필드 갱신 (점 표기 경로 허용)"""
        pass

    @abstractmethod
    async def count(self, entity_type: str, filters: dict[str, Any] | None = None) -> int:
        """조건에 맞는 문서 수"""
        pass

    @abstractmethod
    async def delete_many(self, entity_type: str, filters: dict[str, Any]) -> int:
        """조건에 맞는 문서 삭제 후 삭제 건수 반환"""
        pass

    @abstractmethod
    async def distinct(self, entity_type: str, field: str, filters: dict[str, Any] | None = None) -> list[Any]:
        """필드의 고유 값 목록"""
        pass

    @abstractmethod
    async def find(self, entity_type: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """조건에 맞는 문서 목록"""
        pass
