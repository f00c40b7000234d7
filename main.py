"""
Content Sync FastAPI Application
외부 API → 로컬 저장소 동기화 서비스의 메인 애플리케이션
"""

import asyncio
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

# ⚠️ 중요: 환경 변수를 가장 먼저 로드 (다른 모든 import보다 먼저!)
from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import health, sync
from app.core.di_container import AppContainer, cleanup_resources, initialize_resources
from app.lib.config_loader import ConfigLoader
from app.lib.environment import get_environment
from app.lib.errors import (
    ErrorCode,
    SyncException,
    format_error_response,
    wrap_exception,
)
from app.lib.logger import get_logger

logger = get_logger(__name__)


class SyncApp:
    """동기화 서비스 메인 애플리케이션 클래스 (DI Container 기반)"""

    def __init__(self) -> None:
        self.container = AppContainer()
        self.config: dict[str, Any] | None = None
        self._background_tasks: set[asyncio.Task[Any]] = set()

    async def initialize_modules(self) -> None:
        """설정 로드 → Container 주입 → 리소스 초기화"""
        logger.info("📋 Loading configuration...")

        # 개발 환경에서는 검증 실패 시 명확한 에러 (그 외 환경은 Graceful Degradation)
        is_development = get_environment() == "development"
        self.config = ConfigLoader().load_config(
            validate=True,
            raise_on_validation_error=is_development,
        )
        self.container.config.from_dict(self.config)
        self.container.wire(modules=[sync])

        await initialize_resources(self.container)
        logger.info("✅ All modules initialized via Container")

    def schedule_initial_sync(self) -> None:
        """sync.auto_sync_on_start 가 true 면 백그라운드 전체 동기화 시작"""
        if not (self.config or {}).get("sync", {}).get("auto_sync_on_start", False):
            return
        orchestrator = self.container.sync_orchestrator()
        task = asyncio.create_task(orchestrator.run_full_sync())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        logger.info("🔄 시작 시 전체 동기화 예약")

    async def cleanup_modules(self) -> None:
        for task in list(self._background_tasks):
            task.cancel()
        await cleanup_resources(self.container)
        self.container.unwire()


# 글로벌 앱 인스턴스
sync_app = SyncApp()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """애플리케이션 라이프사이클 관리"""
    logger.info("🚀 Starting Content Sync Application...")
    await sync_app.initialize_modules()
    sync_app.schedule_initial_sync()
    try:
        yield
    finally:
        logger.info("🛑 Shutting down Content Sync Application...")
        await sync_app.cleanup_modules()
        logger.info("📡 Application shutdown completed")


# FastAPI 앱 생성
app = FastAPI(
    title="Content Sync API",
    description="외부 API 동기화 서비스 (users → posts → comments)",
    version="1.0.0",
    lifespan=lifespan,
)


def _get_language_from_request(request: Request) -> str:
    """Accept-Language 헤더에서 언어 코드 추출 ("ko" 또는 "en")"""
    accept_language = request.headers.get("Accept-Language", "en")
    if accept_language.lower().split(",")[0].startswith("ko"):
        return "ko"
    return "en"


@app.exception_handler(SyncException)
async def sync_exception_handler(request: Request, exc: SyncException) -> JSONResponse:
    """SyncException 통합 핸들러 (양언어 지원)"""
    lang = _get_language_from_request(request)
    error_response = format_error_response(
        exc.error_code,
        lang=lang,
        include_solutions=True,
        **exc.context,
    )
    response_content: dict[str, Any] = {
        "error": True,
        "error_code": error_response["error_code"],
        "kind": exc.kind.value,
        "message": error_response["message"],
        "solutions": error_response.get("solutions", []),
    }
    if os.getenv("DEBUG", "false").lower() == "true":
        response_content["detail"] = str(exc)

    return JSONResponse(status_code=500, content=response_content)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """일반 예외 핸들러 (fallback, 양언어 지원)"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    lang = _get_language_from_request(request)
    wrapped_error = wrap_exception(exc, default_code=ErrorCode.GENERAL_001, path=str(request.url))
    return JSONResponse(
        status_code=500,
        content=wrapped_error.to_dict(lang=lang, include_solutions=True),
    )


# 배포 환경에서의 CORS 허용 도메인은 환경 변수 ALLOWED_ORIGINS(콤마 구분)로 설정
allowed_origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()]
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(health.router)
app.include_router(sync.router, prefix="/api")


@app.get("/")
async def root() -> dict[str, Any]:
    """API 안내"""
    return {
        "name": "Content Sync API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "sync_all": "POST /api/sync/all",
            "sync_collection": "POST /api/sync/{entity_type}",
            "sync_single": "POST /api/sync/{entity_type}/{external_id}",
            "sync_batch": "POST /api/sync/{entity_type}/batch",
            "status": "GET /api/sync/status",
            "stats": "GET /api/sync/stats",
            "cleanup": "POST /api/sync/cleanup",
            "source_health": "GET /api/sync/health",
        },
    }


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """요청 로깅 미들웨어"""
    start_time = asyncio.get_event_loop().time()

    response = await call_next(request)

    process_time = asyncio.get_event_loop().time() - start_time
    logger.info(
        f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s",
        extra={
            "method": request.method,
            "path": str(request.url.path),
            "status_code": response.status_code,
            "process_time": process_time,
            "client_ip": request.client.host if request.client else None,
        },
    )

    return response


def main() -> None:
    """메인 실행 함수"""
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"🚀 Starting server on {host}:{port}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.getenv("DEBUG", "false").lower() == "true",
        reload_excludes=["logs/*", "*.log"],
        log_level="info",
    )


if __name__ == "__main__":
    main()
