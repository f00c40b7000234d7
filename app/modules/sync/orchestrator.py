"""
Sync Orchestrator

외부 API → 로컬 저장소 동기화 실행을 담당하는 서비스 모듈.

- 단일 실행 보장 (idle → running compare-and-set, 진행 중이면 ALREADY_IN_PROGRESS)
- 의존 순서대로 단계 실행: users → posts → comments
- 레코드 단위 실패는 집계만 하고 단계/실행을 중단하지 않음
- 사전 점검(헬스 체크) 또는 단계별 컬렉션 조회 실패 시 실행 중단
- 공개 메서드는 예외 대신 SyncResult 를 반환
"""
import dataclasses
import threading
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from app.core.interfaces.storage import ENTITY_TYPES, IEntityStore
from app.lib.errors import (
    ErrorCode,
    SourceAPIError,
    SourceConnectivityError,
    SyncErrorKind,
    SyncException,
    get_error_message,
)
from app.lib.logger import get_logger

from .cleanup import OrphanCleaner
from .mappers import CommentMapper, EntityMapper, PostMapper, UserMapper
from .results import EntityStats, HealthReport, MergeResult, SyncResult, SyncStats
from .source_client import SourceAPIClient

logger = get_logger(__name__)

# 단계 실행 순서 (부모 → 자식)
PHASE_ORDER: tuple[str, ...] = ("users", "posts", "comments")


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class SyncOrchestrator:
    def __init__(
        self,
        source_client: SourceAPIClient,
        store: IEntityStore,
        user_mapper: UserMapper,
        post_mapper: PostMapper,
        comment_mapper: CommentMapper,
        orphan_cleaner: OrphanCleaner,
        batch_concurrency: int = 5,
        max_retries: int = 3,
        retry_base_delay_seconds: float = 1.0,
    ) -> None:
        self.source_client = source_client
        self.store = store
        self.orphan_cleaner = orphan_cleaner
        self.batch_concurrency = batch_concurrency
        self.max_retries = max_retries
        self.retry_base_delay_seconds = retry_base_delay_seconds
        self._mappers: dict[str, EntityMapper] = {
            "users": user_mapper,
            "posts": post_mapper,
            "comments": comment_mapper,
        }

        # 실행 상태 (in_progress 는 _state_lock 으로만 변경)
        self._state_lock = threading.Lock()
        self._in_progress = False
        self.started_at: datetime | None = None
        self.last_sync_time: datetime | None = None
        self.stats = SyncStats()
        self.last_result: SyncResult | None = None

    # ========================================================================
    # 실행 상태
    # ========================================================================

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    def _try_start(self) -> bool:
        """idle → running 전환. 이미 실행 중이면 False"""
        with self._state_lock:
            if self._in_progress:
                return False
            self._in_progress = True
            self.started_at = datetime.now(UTC)
            self.stats = SyncStats()
            return True

    def _finish(self) -> None:
        with self._state_lock:
            self._in_progress = False
            self.started_at = None

    @staticmethod
    def _already_in_progress() -> SyncResult:
        logger.warning("동기화가 이미 진행 중입니다 - 요청 거부")
        return SyncResult(
            success=False,
            error=get_error_message(ErrorCode.SYNC_001.value, lang="en"),
            error_kind=SyncErrorKind.ALREADY_IN_PROGRESS,
            error_code=ErrorCode.SYNC_001.value,
        )

    @staticmethod
    def _unknown_entity(entity_type: str) -> SyncResult:
        return SyncResult(
            success=False,
            error=get_error_message(ErrorCode.SYNC_006.value, lang="en", entity_type=entity_type),
            error_kind=SyncErrorKind.UNKNOWN_ENTITY,
            error_code=ErrorCode.SYNC_006.value,
        )

    # ========================================================================
    # 전체 / 컬렉션 동기화
    # ========================================================================

    async def run_full_sync(self) -> SyncResult:
        """
        전체 동기화 실행

        1. 통계 초기화 (단일 실행 보장)
        2. 헬스 체크 실패 시 쓰기 전에 중단
        3. users → posts → comments 순서로 단계 실행
        4. 완료 시 last_sync_time 기록
        """
        if not self._try_start():
            return self._already_in_progress()

        start = time.perf_counter()
        logger.info("전체 동기화 시작")
        try:
            health = await self.source_client.probe_health()
            if not health.healthy:
                raise SourceConnectivityError(ErrorCode.SYNC_002, reason=health.error or "unhealthy")

            for entity_type in PHASE_ORDER:
                await self._run_phase(entity_type)

            self.last_sync_time = datetime.now(UTC)
            result = SyncResult(success=True, stats=self.stats, duration_ms=_elapsed_ms(start))
            logger.info(
                "전체 동기화 완료",
                extra={"duration_ms": result.duration_ms, "summary": result.summary},
            )
        except Exception as e:
            result = self._failed_run(e, start)
        finally:
            self._finish()

        self.last_result = result
        return result

    async def sync_collection(self, entity_type: str) -> SyncResult:
        """단일 엔티티 단계만 실행 (전체 동기화와 같은 단일 실행 보장 적용)"""
        if entity_type not in ENTITY_TYPES:
            return self._unknown_entity(entity_type)
        if not self._try_start():
            return self._already_in_progress()

        start = time.perf_counter()
        logger.info(f"{entity_type} 동기화 시작")
        try:
            await self._run_phase(entity_type)
            result = SyncResult(
                success=True,
                stats=self.stats,
                duration_ms=_elapsed_ms(start),
                data={"entity_type": entity_type},
            )
        except Exception as e:
            result = self._failed_run(e, start)
        finally:
            self._finish()

        self.last_result = result
        return result

    def _failed_run(self, error: Exception, start: float) -> SyncResult:
        if isinstance(error, SyncException):
            kind, code = error.kind, error.error_code
            logger.error(
                f"동기화 중단: {error}",
                extra={"error_code": code, "error_kind": kind.value, "summary": self.stats.summary()},
            )
        else:
            kind, code = SyncErrorKind.INTERNAL, ErrorCode.GENERAL_001.value
            logger.exception(f"동기화 중 예상치 못한 오류: {error}")
        return SyncResult(
            success=False,
            stats=self.stats,
            duration_ms=_elapsed_ms(start),
            error=str(error),
            error_kind=kind,
            error_code=code,
        )

    async def _run_phase(self, entity_type: str) -> EntityStats:
        """
        컬렉션 1회 조회 후 레코드별 순차 병합

        Raises:
            SourceConnectivityError: 컬렉션 조회 실패 (실행 중단)
        """
        try:
            records = await self.source_client.fetch_collection(f"/{entity_type}")
        except SourceAPIError as e:
            raise SourceConnectivityError(
                ErrorCode.SYNC_003, entity_type=entity_type, reason=str(e)
            ) from e

        logger.info(f"{entity_type} 단계 시작", extra={"entity_type": entity_type, "count": len(records)})
        stats = self.stats.for_type(entity_type)
        mapper = self._mappers[entity_type]

        for raw in records:
            result = await self._merge_isolated(mapper, raw)
            stats.record(result.outcome)
            if not result.ok:
                logger.warning(
                    f"{entity_type} 레코드 병합 실패: {result.error}",
                    extra={
                        "entity_type": entity_type,
                        "external_id": result.external_id,
                        "error_code": result.error_code,
                        "error_kind": result.error_kind.value if result.error_kind else None,
                    },
                )

        logger.info(f"{entity_type} 단계 완료", extra={"entity_type": entity_type, **stats.to_dict()})
        return stats

    @staticmethod
    async def _merge_isolated(mapper: EntityMapper, raw: Any) -> MergeResult:
        """레코드 1건 병합 (예상치 못한 예외도 레코드 실패로 격리)"""
        try:
            return await mapper.merge_record(raw)
        except Exception as e:
            external_id = raw.get("id") if isinstance(raw, dict) else None
            logger.exception(f"{mapper.entity_type} 레코드 처리 중 예상치 못한 오류: {e}")
            return MergeResult.failure(
                mapper.entity_type,
                external_id,
                SyncErrorKind.INTERNAL,
                get_error_message(
                    ErrorCode.SYNC_008.value, lang="en", entity_type=mapper.entity_type, reason=str(e)
                ),
                ErrorCode.SYNC_008.value,
            )

    # ========================================================================
    # 대상 지정 동기화
    # ========================================================================

    async def sync_single_entity(self, entity_type: str, external_id: int) -> SyncResult:
        """외부 레코드 1건 조회 후 병합"""
        if entity_type not in ENTITY_TYPES:
            return self._unknown_entity(entity_type)

        start = time.perf_counter()
        stats = SyncStats()
        try:
            raw = await self.source_client.fetch_one(f"/{entity_type}/{external_id}")
        except SourceAPIError as e:
            logger.warning(
                f"{entity_type} 단건 조회 실패: {e}",
                extra={"entity_type": entity_type, "external_id": external_id, "error_code": e.error_code},
            )
            return SyncResult(
                success=False,
                stats=stats,
                duration_ms=_elapsed_ms(start),
                error=str(e),
                error_kind=e.kind,
                error_code=e.error_code,
            )

        result = await self._merge_isolated(self._mappers[entity_type], raw)
        stats.for_type(entity_type).record(result.outcome)
        return SyncResult(
            success=result.ok,
            stats=stats,
            duration_ms=_elapsed_ms(start),
            error=result.error,
            error_kind=result.error_kind,
            error_code=result.error_code,
            data=self._merge_payload(result),
        )

    async def sync_entities(self, entity_type: str, external_ids: Sequence[int]) -> SyncResult:
        """
        여러 외부 레코드 대상 재동기화

        batch_fetch(동시성 제한 + 백오프 재시도)로 조회한 뒤 입력 순서대로 병합합니다.
        개별 실패는 결과 목록과 errors 통계에만 반영됩니다.
        """
        if entity_type not in ENTITY_TYPES:
            return self._unknown_entity(entity_type)

        start = time.perf_counter()
        stats = SyncStats()
        entity_stats = stats.for_type(entity_type)
        items: list[dict[str, Any]] = []

        fetched = await self.source_client.batch_fetch(
            [f"/{entity_type}/{eid}" for eid in external_ids],
            concurrency=self.batch_concurrency,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay_seconds,
        )
        for external_id, item in zip(external_ids, fetched, strict=True):
            if item.error is not None:
                entity_stats.record(None)
                items.append(
                    {
                        "external_id": external_id,
                        "success": False,
                        "attempts": item.attempts,
                        "error": str(item.error),
                        "error_kind": item.error.kind.value,
                        "error_code": item.error.error_code,
                    }
                )
                continue

            result = await self._merge_isolated(self._mappers[entity_type], item.value)
            entity_stats.record(result.outcome)
            items.append({"attempts": item.attempts, **self._merge_payload(result)})

        logger.info(
            f"{entity_type} 대상 동기화 완료",
            extra={"entity_type": entity_type, "requested": len(external_ids), **entity_stats.to_dict()},
        )
        return SyncResult(
            success=True,
            stats=stats,
            duration_ms=_elapsed_ms(start),
            data={"entity_type": entity_type, "results": items},
        )

    @staticmethod
    def _merge_payload(result: MergeResult) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "external_id": result.external_id,
            "success": result.ok,
            "outcome": result.outcome.value if result.outcome else None,
        }
        if result.ok and dataclasses.is_dataclass(result.entity):
            payload["entity"] = dataclasses.asdict(result.entity)
        else:
            payload["error"] = result.error
            payload["error_kind"] = result.error_kind.value if result.error_kind else None
            payload["error_code"] = result.error_code
        return payload

    # ========================================================================
    # 상태 / 통계 / 유지보수
    # ========================================================================

    def get_sync_status(self) -> dict[str, Any]:
        return {
            "in_progress": self._in_progress,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_sync_time": self.last_sync_time.isoformat() if self.last_sync_time else None,
            "stats": self.stats.to_dict(),
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }

    async def get_database_stats(self) -> dict[str, Any]:
        """엔티티 타입별 전체 건수와 API 동기화 건수"""
        result: dict[str, Any] = {}
        for entity_type in ENTITY_TYPES:
            result[entity_type] = {
                "total": await self.store.count(entity_type),
                "synced": await self.store.count(entity_type, {"sync_source": "api"}),
            }
        result["last_sync_time"] = self.last_sync_time.isoformat() if self.last_sync_time else None
        result["in_progress"] = self._in_progress
        return result

    async def check_source_health(self) -> HealthReport:
        return await self.source_client.probe_health()

    async def cleanup_orphans(self) -> dict[str, Any]:
        return await self.orphan_cleaner.cleanup_orphans()
