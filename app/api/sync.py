"""
Sync API

동기화를 트리거하고 상태를 조회하는 API 엔드포인트.
실패한 동기화도 구조화된 결과 본문을 그대로 반환하며, 상태 코드만 에러 종류에 맞춥니다.
"""

from typing import Any

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.core.di_container import AppContainer
from app.lib.errors import StoreError, SyncErrorKind
from app.modules.sync.orchestrator import SyncOrchestrator
from app.modules.sync.results import SyncResult

router = APIRouter(prefix="/sync", tags=["Sync"])

# 에러 종류 → HTTP 상태 코드
_STATUS_BY_KIND: dict[SyncErrorKind, int] = {
    SyncErrorKind.ALREADY_IN_PROGRESS: 409,
    SyncErrorKind.UNKNOWN_ENTITY: 404,
    SyncErrorKind.NOT_FOUND: 404,
    SyncErrorKind.MISSING_DEPENDENCY: 422,
    SyncErrorKind.INVALID_RECORD: 422,
    SyncErrorKind.CONNECTIVITY: 502,
    SyncErrorKind.TRANSPORT: 502,
    SyncErrorKind.RATE_LIMITED: 502,
    SyncErrorKind.SERVER_ERROR: 502,
    SyncErrorKind.CLIENT_ERROR: 502,
    SyncErrorKind.INVALID_RESPONSE: 502,
    SyncErrorKind.STORE_ERROR: 503,
}


class BatchSyncRequest(BaseModel):
    external_ids: list[int] = Field(min_length=1, max_length=500)


def _result_response(result: SyncResult) -> JSONResponse:
    status_code = 200
    if not result.success:
        status_code = _STATUS_BY_KIND.get(result.error_kind, 500) if result.error_kind else 500
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result.to_dict()))


@router.post("/all")
@inject
async def sync_all(
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> JSONResponse:
    """전체 동기화 (users → posts → comments)"""
    return _result_response(await orchestrator.run_full_sync())


@router.get("/status")
@inject
async def sync_status(
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> dict[str, Any]:
    return orchestrator.get_sync_status()


@router.get("/stats")
@inject
async def database_stats(
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> dict[str, Any]:
    """엔티티 타입별 저장 건수"""
    try:
        return await orchestrator.get_database_stats()
    except StoreError as e:
        raise HTTPException(status_code=503, detail=e.to_dict()) from e


@router.post("/cleanup")
@inject
async def cleanup_orphans(
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> dict[str, Any]:
    """부모 참조가 끊긴 게시글/댓글 삭제"""
    try:
        return await orchestrator.cleanup_orphans()
    except StoreError as e:
        raise HTTPException(status_code=503, detail=e.to_dict()) from e


@router.get("/health")
@inject
async def source_health(
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> JSONResponse:
    """외부 API 헬스 체크"""
    report = await orchestrator.check_source_health()
    return JSONResponse(
        status_code=200 if report.healthy else 503,
        content=jsonable_encoder(report.to_dict()),
    )


@router.post("/{entity_type}")
@inject
async def sync_collection(
    entity_type: str,
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> JSONResponse:
    """단일 엔티티 타입 컬렉션 동기화"""
    return _result_response(await orchestrator.sync_collection(entity_type))


@router.post("/{entity_type}/batch")
@inject
async def sync_batch(
    entity_type: str,
    request: BatchSyncRequest,
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> JSONResponse:
    """여러 external_id 대상 재동기화 (동시성 제한 + 재시도)"""
    return _result_response(await orchestrator.sync_entities(entity_type, request.external_ids))


@router.post("/{entity_type}/{external_id}")
@inject
async def sync_single(
    entity_type: str,
    external_id: int,
    orchestrator: SyncOrchestrator = Depends(Provide[AppContainer.sync_orchestrator]),
) -> JSONResponse:
    """외부 레코드 1건 동기화"""
    return _result_response(await orchestrator.sync_single_entity(entity_type, external_id))
