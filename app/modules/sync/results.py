"""
동기화 결과 타입

예외 대신 태그된 결과 값으로 도메인 결과를 전달합니다.
- MergeResult: 레코드 1건 병합 결과 (Created / Updated / 실패 종류)
- SyncResult: 동기화 실행 결과 (전체 / 컬렉션 / 단건 / 배치)
- HealthReport: 외부 API 헬스 체크 결과
- BatchItemResult: batch_fetch 요청별 결과
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from app.lib.errors import SourceAPIError, SyncErrorKind


class MergeOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass
class EntityStats:
    """엔티티 타입별 카운터"""

    created: int = 0
    updated: int = 0
    errors: int = 0

    def record(self, outcome: MergeOutcome | None) -> None:
        if outcome is MergeOutcome.CREATED:
            self.created += 1
        elif outcome is MergeOutcome.UPDATED:
            self.updated += 1
        else:
            self.errors += 1

    def to_dict(self) -> dict[str, int]:
        return {"created": self.created, "updated": self.updated, "errors": self.errors}


@dataclass
class SyncStats:
    """실행 단위 통계 (users / posts / comments)"""

    users: EntityStats = field(default_factory=EntityStats)
    posts: EntityStats = field(default_factory=EntityStats)
    comments: EntityStats = field(default_factory=EntityStats)

    def for_type(self, entity_type: str) -> EntityStats:
        stats: EntityStats = getattr(self, entity_type)
        return stats

    def summary(self) -> dict[str, int]:
        parts = (self.users, self.posts, self.comments)
        return {
            "totalCreated": sum(p.created for p in parts),
            "totalUpdated": sum(p.updated for p in parts),
            "totalErrors": sum(p.errors for p in parts),
        }

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "users": self.users.to_dict(),
            "posts": self.posts.to_dict(),
            "comments": self.comments.to_dict(),
        }


@dataclass
class MergeResult:
    """레코드 1건 병합 결과"""

    entity_type: str
    external_id: int | None
    outcome: MergeOutcome | None = None
    entity: Any = None
    error_kind: SyncErrorKind | None = None
    error_code: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not None

    @classmethod
    def success(cls, entity_type: str, external_id: int | None, outcome: MergeOutcome, entity: Any) -> "MergeResult":
        return cls(entity_type=entity_type, external_id=external_id, outcome=outcome, entity=entity)

    @classmethod
    def failure(
        cls,
        entity_type: str,
        external_id: int | None,
        kind: SyncErrorKind,
        error: str,
        error_code: str | None = None,
    ) -> "MergeResult":
        return cls(
            entity_type=entity_type,
            external_id=external_id,
            error_kind=kind,
            error_code=error_code,
            error=error,
        )


@dataclass
class SyncResult:
    """
    동기화 실행 결과

    to_dict() 는 API 응답 형태:
    {success, duration_ms, timestamp, stats, summary, error?, error_kind?, data?}
    """

    success: bool
    stats: SyncStats = field(default_factory=SyncStats)
    duration_ms: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    error: str | None = None
    error_kind: SyncErrorKind | None = None
    error_code: str | None = None
    data: Any = None

    @property
    def summary(self) -> dict[str, int]:
        return self.stats.summary()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp.isoformat(),
            "stats": self.stats.to_dict(),
            "summary": self.summary,
        }
        if self.error is not None:
            result["error"] = self.error
        if self.error_kind is not None:
            result["error_kind"] = self.error_kind.value
        if self.error_code is not None:
            result["error_code"] = self.error_code
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class HealthReport:
    """외부 API 헬스 체크 결과"""

    healthy: bool
    endpoints: dict[str, bool] = field(default_factory=dict)
    success_rate: float = 0.0
    response_time_ms: int = 0
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "endpoints": dict(self.endpoints),
            "success_rate": self.success_rate,
            "response_time_ms": self.response_time_ms,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class BatchItemResult:
    """batch_fetch 요청별 결과 (성공 값 또는 최종 에러)"""

    endpoint: str
    value: Any = None
    error: SourceAPIError | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None
