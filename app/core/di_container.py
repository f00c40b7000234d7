"""
DI Container - Dependency Injection Container for the sync service

dependency-injector 라이브러리 기반 DI Container.
모든 협력 객체를 한 번만 생성하여 주입합니다 (모듈 레벨 싱글톤 없음).

Provider 타입:
- Configuration: ConfigLoader 가 로드한 설정 dict 주입
- Singleton: 프로세스 내 공유 인스턴스 (클라이언트, 저장소, 오케스트레이터)
"""

from dependency_injector import containers, providers

from app.infrastructure.storage.entity.factory import StoreFactory
from app.lib.logger import get_logger
from app.lib.mongodb_client import MongoDBClient
from app.modules.sync.cleanup import OrphanCleaner
from app.modules.sync.counters import DerivedCounterMaintainer
from app.modules.sync.mappers import CommentMapper, PostMapper, UserMapper
from app.modules.sync.orchestrator import SyncOrchestrator
from app.modules.sync.source_client import SourceAPIClient

logger = get_logger(__name__)


class AppContainer(containers.DeclarativeContainer):
    """
    애플리케이션 DI Container

    Provider 계층:
    ┌─────────────────────────────────────────────────────────────┐
    │ 1. Configuration                                           │
    ├─────────────────────────────────────────────────────────────┤
    │ 2. Infrastructure (Singleton)                              │
    │    - mongodb_client, entity_store, source_client           │
    ├─────────────────────────────────────────────────────────────┤
    │ 3. Sync Components (Singleton)                             │
    │    - counter_maintainer, user/post/comment_mapper,         │
    │      orphan_cleaner                                        │
    ├─────────────────────────────────────────────────────────────┤
    │ 4. Application Service (Singleton)                         │
    │    - sync_orchestrator (실행 상태 보유)                     │
    └─────────────────────────────────────────────────────────────┘
    """

    # ========================================
    # 1. Configuration Provider
    # ========================================
    config = providers.Configuration()

    # ========================================
    # 2. Infrastructure
    # ========================================
    # MongoDB 연결은 첫 컬렉션 접근 시점에 생성 (memory provider 에서는 연결 안 함)
    mongodb_client = providers.Singleton(MongoDBClient, config=config.mongodb)

    entity_store = providers.Singleton(
        StoreFactory.create,
        store_config=config.store,
        mongodb_client=mongodb_client,
    )

    source_client = providers.Singleton(
        SourceAPIClient,
        base_url=config.source.base_url,
        timeout_seconds=config.source.timeout_seconds,
        user_agent=config.source.user_agent,
        health_endpoints=config.source.health_endpoints,
        health_timeout_seconds=config.source.health_timeout_seconds,
        batch_concurrency=config.sync.batch_concurrency,
        max_retries=config.sync.max_retries,
        retry_base_delay_seconds=config.sync.retry_base_delay_seconds,
    )

    # ========================================
    # 3. Sync Components
    # ========================================
    counter_maintainer = providers.Singleton(DerivedCounterMaintainer, store=entity_store)

    user_mapper = providers.Singleton(UserMapper, store=entity_store, counters=counter_maintainer)
    post_mapper = providers.Singleton(PostMapper, store=entity_store, counters=counter_maintainer)
    comment_mapper = providers.Singleton(
        CommentMapper,
        store=entity_store,
        counters=counter_maintainer,
        max_depth=config.sync.max_comment_depth,
    )

    orphan_cleaner = providers.Singleton(OrphanCleaner, store=entity_store, counters=counter_maintainer)

    # ========================================
    # 4. Application Service
    # ========================================
    sync_orchestrator = providers.Singleton(
        SyncOrchestrator,
        source_client=source_client,
        store=entity_store,
        user_mapper=user_mapper,
        post_mapper=post_mapper,
        comment_mapper=comment_mapper,
        orphan_cleaner=orphan_cleaner,
        batch_concurrency=config.sync.batch_concurrency,
        max_retries=config.sync.max_retries,
        retry_base_delay_seconds=config.sync.retry_base_delay_seconds,
    )


async def initialize_resources(container: AppContainer) -> None:
    """
    애플리케이션 시작 시 리소스 초기화

    - 저장소 인덱스 생성 (external_id unique sparse)
    """
    store = container.entity_store()
    await store.ensure_indexes()
    logger.info("리소스 초기화 완료", extra={"store": type(store).__name__})


async def cleanup_resources(container: AppContainer) -> None:
    """
    애플리케이션 종료 시 리소스 정리

    정리 순서 (의존성 역순):
    1. Source Client - HTTP 클라이언트 종료
    2. MongoDB Client - 연결 종료
    """
    logger.info("애플리케이션 리소스 정리 시작")
    cleanup_errors: list[str] = []

    try:
        await container.source_client().close()
    except Exception as e:
        cleanup_errors.append(f"Source Client: {e}")
        logger.error("Source Client 종료 실패", extra={"error": str(e)}, exc_info=True)

    try:
        container.mongodb_client().close()
    except Exception as e:
        cleanup_errors.append(f"MongoDB Client: {e}")
        logger.error("MongoDB Client 종료 실패", extra={"error": str(e)}, exc_info=True)

    if cleanup_errors:
        logger.warning(
            "리소스 정리 완료 (오류 발생)",
            extra={"error_count": len(cleanup_errors), "errors": cleanup_errors},
        )
    else:
        logger.info("리소스 정리 완료")
