"""
In-Memory Entity Store

IEntityStore 인터페이스의 dict 기반 구현입니다.
로컬 실행(store.provider=memory)과 테스트에서 MongoDB 없이 사용합니다.
"""
import copy
import uuid
from datetime import UTC, datetime
from typing import Any

from app.core.interfaces.storage import ENTITY_TYPES, IEntityStore
from app.lib.errors import ErrorCode, SyncError


def _get_path(doc: dict[str, Any], path: str) -> Any:
    current: Any = doc
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _set_path(doc: dict[str, Any], path: str, value: Any) -> None:
    keys = path.split(".")
    current = doc
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def _matches(doc: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    for key, condition in filters.items():
        value = _get_path(doc, key)
        if isinstance(condition, dict):
            if "$in" in condition and value not in condition["$in"]:
                return False
            if "$nin" in condition and value in condition["$nin"]:
                return False
        elif value != condition:
            return False
    return True


class InMemoryEntityStore(IEntityStore):
    """dict 기반 엔티티 저장소 (반환 문서는 항상 복사본)"""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = {t: {} for t in ENTITY_TYPES}

    def _table(self, entity_type: str) -> dict[str, dict[str, Any]]:
        if entity_type not in self._data:
            raise SyncError(ErrorCode.SYNC_006, entity_type=entity_type)
        return self._data[entity_type]

    def clear(self) -> None:
        for table in self._data.values():
            table.clear()

    async def find_by_external_id(self, entity_type: str, external_id: int) -> dict[str, Any] | None:
        for doc in self._table(entity_type).values():
            if doc.get("external_id") == external_id:
                return copy.deepcopy(doc)
        return None

    async def find_by_id(self, entity_type: str, entity_id: str) -> dict[str, Any] | None:
        doc = self._table(entity_type).get(entity_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def upsert(self, entity_type: str, external_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        table = self._table(entity_type)
        now = datetime.now(UTC)
        existing = next((d for d in table.values() if d.get("external_id") == external_id), None)
        if existing is None:
            existing = {"id": uuid.uuid4().hex, "created_at": now}
            table[existing["id"]] = existing
        for key, value in fields.items():
            if key in ("id", "_id", "created_at"):
                continue
            existing[key] = copy.deepcopy(value)
        existing["external_id"] = external_id
        existing["updated_at"] = now
        return copy.deepcopy(existing)

    async def insert(self, entity_type: str, fields: dict[str, Any]) -> dict[str, Any]:
        """external_id 없는 문서 추가 (수동 생성 엔티티)"""
        table = self._table(entity_type)
        now = datetime.now(UTC)
        doc = copy.deepcopy(fields)
        doc["id"] = uuid.uuid4().hex
        doc.setdefault("created_at", now)
        doc["updated_at"] = now
        table[doc["id"]] = doc
        return copy.deepcopy(doc)

    async def update_fields(self, entity_type: str, entity_id: str, fields: dict[str, Any]) -> bool:
        doc = self._table(entity_type).get(entity_id)
        if doc is None:
            return False
        for path, value in fields.items():
            _set_path(doc, path, copy.deepcopy(value))
        doc["updated_at"] = datetime.now(UTC)
        return True

    async def count(self, entity_type: str, filters: dict[str, Any] | None = None) -> int:
        return sum(1 for doc in self._table(entity_type).values() if _matches(doc, filters))

    async def delete_many(self, entity_type: str, filters: dict[str, Any]) -> int:
        if not filters:
            return 0
        table = self._table(entity_type)
        doomed = [doc_id for doc_id, doc in table.items() if _matches(doc, filters)]
        for doc_id in doomed:
            del table[doc_id]
        return len(doomed)

    async def distinct(self, entity_type: str, field: str, filters: dict[str, Any] | None = None) -> list[Any]:
        values: list[Any] = []
        for doc in self._table(entity_type).values():
            if not _matches(doc, filters):
                continue
            value = _get_path(doc, field)
            if value is not None and value not in values:
                values.append(value)
        return values

    async def find(self, entity_type: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._table(entity_type).values() if _matches(doc, filters)]
