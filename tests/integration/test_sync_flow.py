"""
동기화 통합 테스트

실제 SourceAPIClient(httpx) + respx 로 고정한 외부 API + 인메모리 저장소로
전체 동기화 → 재동기화 → 고아 정리 흐름을 검증합니다.
"""

import httpx
import pytest
import respx

from app.modules.sync.orchestrator import SyncOrchestrator
from app.modules.sync.source_client import SourceAPIClient

BASE_URL = "https://placeholder.test"

pytestmark = pytest.mark.integration


@pytest.fixture
async def live_orchestrator(memory_store, user_mapper, post_mapper, comment_mapper, orphan_cleaner):
    client = SourceAPIClient(base_url=BASE_URL, max_retries=2, retry_base_delay_seconds=0.0)
    orchestrator = SyncOrchestrator(
        source_client=client,
        store=memory_store,
        user_mapper=user_mapper,
        post_mapper=post_mapper,
        comment_mapper=comment_mapper,
        orphan_cleaner=orphan_cleaner,
        max_retries=2,
        retry_base_delay_seconds=0.0,
    )
    yield orchestrator
    await client.close()


@pytest.fixture
def mocked_api(source_data):
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        for collection, records in source_data.items():
            router.get(collection).mock(return_value=httpx.Response(200, json=records))
            for record in records:
                router.get(f"{collection}/{record['id']}").mock(return_value=httpx.Response(200, json=record))
        yield router


class TestSyncFlow:
    """외부 API → 저장소 전체 흐름"""

    async def test_full_sync_then_resync(self, live_orchestrator, mocked_api, memory_store):
        first = await live_orchestrator.run_full_sync()
        second = await live_orchestrator.run_full_sync()

        assert first.success is True
        assert first.summary["totalCreated"] == 9
        assert second.summary == {"totalCreated": 0, "totalUpdated": 9, "totalErrors": 0}
        post = await memory_store.find_by_external_id("posts", 1)
        assert post["stats"]["comment_count"] == 2
        assert post["version"] == 1

    async def test_server_error_during_phase_aborts(self, live_orchestrator, mocked_api, memory_store):
        mocked_api.get("/comments").mock(return_value=httpx.Response(500))

        result = await live_orchestrator.run_full_sync()

        assert result.success is False
        assert result.error_code == "SYNC-003"
        assert await memory_store.count("posts") == 3
        assert await memory_store.count("comments") == 0

    async def test_targeted_batch_resync(self, live_orchestrator, mocked_api):
        await live_orchestrator.sync_collection("users")
        mocked_api.get("/posts/99").mock(return_value=httpx.Response(404))

        result = await live_orchestrator.sync_entities("posts", [1, 3, 99])

        items = result.data["results"]
        assert [i["success"] for i in items] == [True, True, False]
        assert items[2]["error_kind"] == "not_found"
        assert result.stats.posts.to_dict() == {"created": 2, "updated": 0, "errors": 1}

    async def test_cleanup_after_user_removed(self, live_orchestrator, mocked_api, memory_store):
        await live_orchestrator.run_full_sync()
        await memory_store.delete_many("users", {"external_id": 1})

        report = await live_orchestrator.cleanup_orphans()

        assert report["deleted"] == {"posts": 2, "comments": 3}
        stats = await live_orchestrator.get_database_stats()
        assert stats["posts"]["total"] == 1
        assert stats["comments"]["total"] == 1
