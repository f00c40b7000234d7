"""
동기화 배치 실행기 테스트

테스트 설정(memory 저장소)으로 구성한 Container 에 Mock 외부 API 를 주입합니다.
"""

import sys
from unittest.mock import AsyncMock, patch

import pytest
from dependency_injector import providers

from app.batch import sync_batch
from app.core.di_container import AppContainer
from app.infrastructure.storage.entity.memory_store import InMemoryEntityStore
from app.lib.config_loader import ConfigLoader
from app.modules.sync.results import SyncResult


@pytest.fixture
def container(fake_source):
    container = AppContainer()
    container.config.from_dict(ConfigLoader(environment="test").load_config())
    container.source_client.override(providers.Object(fake_source))
    yield container
    container.source_client.reset_override()


class TestContainer:
    """DI Container 구성 테스트"""

    def test_test_config_builds_memory_store(self, container):
        assert isinstance(container.entity_store(), InMemoryEntityStore)

    def test_orchestrator_is_singleton(self, container):
        orchestrator = container.sync_orchestrator()

        assert orchestrator is container.sync_orchestrator()
        assert orchestrator.store is container.entity_store()
        assert orchestrator.max_retries == 3


class TestRunSyncBatch:
    """run_sync_batch 테스트"""

    async def test_full_sync_with_cleanup_and_recompute(self, container):
        outcome = await sync_batch.run_sync_batch(
            entity="all", cleanup=True, recompute=True, container=container
        )

        result = outcome["sync"]
        assert result.success is True
        assert result.summary["totalCreated"] == 9
        assert outcome["cleanup"]["deleted"] == {"posts": 0, "comments": 0}
        assert outcome["recompute"] == {"users": 2, "posts": 3}

    async def test_single_collection(self, container):
        outcome = await sync_batch.run_sync_batch(entity="users", container=container)

        assert outcome["sync"].stats.users.created == 2
        assert outcome["cleanup"] is None

    async def test_recompute_only(self, container):
        outcome = await sync_batch.run_sync_batch(entity="none", recompute=True, container=container)

        assert outcome["sync"] is None
        assert outcome["recompute"] == {"users": 0, "posts": 0}


class TestMain:
    """CLI 종료 코드 테스트"""

    async def test_exit_code_zero_on_success(self):
        outcome = {"sync": SyncResult(success=True), "cleanup": None, "recompute": None}
        with (
            patch.object(sys, "argv", ["sync_batch", "--entity", "users"]),
            patch.object(sync_batch, "run_sync_batch", new=AsyncMock(return_value=outcome)) as mock_run,
        ):
            exit_code = await sync_batch.main()

        assert exit_code == 0
        mock_run.assert_awaited_once_with(entity="users", cleanup=False, recompute=False)

    async def test_exit_code_one_on_failure(self):
        outcome = {"sync": SyncResult(success=False, error="down"), "cleanup": None, "recompute": None}
        with (
            patch.object(sys, "argv", ["sync_batch", "--cleanup"]),
            patch.object(sync_batch, "run_sync_batch", new=AsyncMock(return_value=outcome)),
        ):
            exit_code = await sync_batch.main()

        assert exit_code == 1
