"""
MongoDB Entity Store Adapter

IEntityStore 인터페이스를 구현한 MongoDB 어댑터입니다.
pymongo 동기 드라이버를 asyncio.to_thread 로 감싸 비동기 호출을 지원합니다.

문서 규칙:
- MongoDB `_id` (ObjectId) ↔ 도메인 `id` (문자열) 변환
- 참조 필드(user_id, post_id, parent_id)는 문자열 id 로 저장
- external_id 에 unique + sparse 인덱스 (수동 생성 엔티티는 external_id 없음)
"""

import asyncio
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.core.interfaces.storage import ENTITY_TYPES, IEntityStore
from app.lib.errors import ErrorCode, StoreError, SyncError
from app.lib.logger import get_logger
from app.lib.mongodb_client import MongoDBClient

logger = get_logger(__name__)

# 엔티티 타입별 보조 인덱스 (참조 필드)
_SECONDARY_INDEXES: dict[str, list[str]] = {
    "users": [],
    "posts": ["user_id"],
    "comments": ["post_id", "parent_id"],
}


def _to_object_id(value: Any) -> ObjectId | None:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


class MongoEntityStore(IEntityStore):
    """
    MongoDB 기반 엔티티 저장소

    Args:
        mongodb_client: MongoDB 클라이언트 (DI)
        collection_names: 엔티티 타입 → 컬렉션 이름 (기본: 타입 이름 그대로)
    """

    def __init__(
        self,
        mongodb_client: MongoDBClient,
        collection_names: dict[str, str] | None = None,
    ) -> None:
        self.mongodb_client = mongodb_client
        self.collection_names = {t: t for t in ENTITY_TYPES}
        if collection_names:
            self.collection_names.update(collection_names)

    def _collection(self, entity_type: str) -> Collection:
        if entity_type not in self.collection_names:
            raise SyncError(ErrorCode.SYNC_006, entity_type=entity_type)
        return self.mongodb_client.get_collection(self.collection_names[entity_type])

    # ------------------------------------------------------------------
    # 문서/필터 변환
    # ------------------------------------------------------------------

    @staticmethod
    def _from_mongo(doc: dict[str, Any] | None) -> dict[str, Any] | None:
        if doc is None:
            return None
        result = dict(doc)
        result["id"] = str(result.pop("_id"))
        return result

    @staticmethod
    def _to_mongo_filter(filters: dict[str, Any] | None) -> dict[str, Any]:
        """도메인 필터 → MongoDB 필터 (`id` 키는 `_id` ObjectId 로 변환)"""
        if not filters:
            return {}
        mongo_filter: dict[str, Any] = {}
        for key, condition in filters.items():
            if key != "id":
                mongo_filter[key] = condition
                continue
            if isinstance(condition, dict):
                converted = {}
                for op, values in condition.items():
                    ids = [_to_object_id(v) for v in values]
                    converted[op] = [i for i in ids if i is not None]
                mongo_filter["_id"] = converted
            else:
                mongo_filter["_id"] = _to_object_id(condition)
        return mongo_filter

    async def _run(self, operation: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except PyMongoError as e:
            logger.error(
                f"MongoDB {operation} 실패: {e}",
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise StoreError(ErrorCode.STORE_002, operation=operation, reason=str(e)) from e

    # ------------------------------------------------------------------
    # IEntityStore
    # ------------------------------------------------------------------

    async def ensure_indexes(self) -> None:
        """external_id unique sparse 인덱스 및 참조 필드 인덱스 생성"""
        for entity_type in ENTITY_TYPES:
            collection = self._collection(entity_type)
            await self._run(
                "create_index",
                collection.create_index,
                [("external_id", ASCENDING)],
                unique=True,
                sparse=True,
            )
            for field in _SECONDARY_INDEXES[entity_type]:
                await self._run("create_index", collection.create_index, [(field, ASCENDING)])
        logger.info("MongoDB 인덱스 확인 완료", extra={"collections": list(self.collection_names.values())})

    async def find_by_external_id(self, entity_type: str, external_id: int) -> dict[str, Any] | None:
        collection = self._collection(entity_type)
        doc = await self._run("find_one", collection.find_one, {"external_id": external_id})
        return self._from_mongo(doc)

    async def find_by_id(self, entity_type: str, entity_id: str) -> dict[str, Any] | None:
        object_id = _to_object_id(entity_id)
        if object_id is None:
            return None
        collection = self._collection(entity_type)
        doc = await self._run("find_one", collection.find_one, {"_id": object_id})
        return self._from_mongo(doc)

    async def upsert(self, entity_type: str, external_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        collection = self._collection(entity_type)
        now = datetime.now(UTC)
        update_fields = {k: v for k, v in fields.items() if k not in ("id", "_id", "created_at")}
        update_fields["external_id"] = external_id
        update_fields["updated_at"] = now
        doc = await self._run(
            "upsert",
            collection.find_one_and_update,
            {"external_id": external_id},
            {"$set": update_fields, "$setOnInsert": {"created_at": now}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        result = self._from_mongo(doc)
        if result is None:
            raise StoreError(ErrorCode.STORE_002, operation="upsert", reason="no document returned")
        return result

    async def update_fields(self, entity_type: str, entity_id: str, fields: dict[str, Any]) -> bool:
        object_id = _to_object_id(entity_id)
        if object_id is None:
            return False
        collection = self._collection(entity_type)
        update = dict(fields)
        update["updated_at"] = datetime.now(UTC)
        result = await self._run("update_one", collection.update_one, {"_id": object_id}, {"$set": update})
        return bool(result.matched_count)

    async def count(self, entity_type: str, filters: dict[str, Any] | None = None) -> int:
        collection = self._collection(entity_type)
        return int(await self._run("count_documents", collection.count_documents, self._to_mongo_filter(filters)))

    async def delete_many(self, entity_type: str, filters: dict[str, Any]) -> int:
        if not filters:
            # 조건 없으면 삭제 안함
            logger.warning("빈 필터로 delete_many 요청 - 무시", extra={"entity_type": entity_type})
            return 0
        collection = self._collection(entity_type)
        result = await self._run("delete_many", collection.delete_many, self._to_mongo_filter(filters))
        return int(result.deleted_count)

    async def distinct(self, entity_type: str, field: str, filters: dict[str, Any] | None = None) -> list[Any]:
        collection = self._collection(entity_type)
        mongo_field = "_id" if field == "id" else field
        values = await self._run("distinct", collection.distinct, mongo_field, self._to_mongo_filter(filters))
        if field == "id":
            return [str(v) for v in values]
        return list(values)

    async def find(self, entity_type: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        collection = self._collection(entity_type)

        def _fetch() -> list[dict[str, Any]]:
            return list(collection.find(self._to_mongo_filter(filters)))

        docs = await self._run("find", _fetch)
        return [d for d in (self._from_mongo(doc) for doc in docs) if d is not None]
