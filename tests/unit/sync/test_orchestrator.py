"""
SyncOrchestrator 단위 테스트

- 전체 동기화: 단계 순서, 멱등성, 레코드 단위 실패 격리
- 실행 중단: 헬스 체크 실패, 단계별 컬렉션 조회 실패
- 단일 실행 보장 (ALREADY_IN_PROGRESS)
- 대상 지정 동기화 (단건 / 배치), 상태 / 통계 조회
"""

import asyncio
from unittest.mock import patch

from app.lib.errors import SourceNotFoundError, SourceServerError, SyncErrorKind
from app.modules.sync.orchestrator import PHASE_ORDER
from app.modules.sync.results import BatchItemResult, HealthReport


class TestRunFullSync:
    """전체 동기화 테스트"""

    async def test_first_run_creates_everything(self, orchestrator, memory_store):
        result = await orchestrator.run_full_sync()

        assert result.success is True
        assert result.stats.to_dict() == {
            "users": {"created": 2, "updated": 0, "errors": 0},
            "posts": {"created": 3, "updated": 0, "errors": 0},
            "comments": {"created": 4, "updated": 0, "errors": 0},
        }
        assert result.summary == {"totalCreated": 9, "totalUpdated": 0, "totalErrors": 0}
        assert await memory_store.count("comments") == 4
        assert orchestrator.last_sync_time is not None
        assert orchestrator.in_progress is False

    async def test_second_run_is_idempotent(self, orchestrator, memory_store):
        await orchestrator.run_full_sync()

        result = await orchestrator.run_full_sync()

        assert result.summary == {"totalCreated": 0, "totalUpdated": 9, "totalErrors": 0}
        assert await memory_store.count("users") == 2
        assert await memory_store.count("posts") == 3
        assert await memory_store.count("comments") == 4

    async def test_phases_run_parent_first(self, orchestrator, fake_source):
        await orchestrator.run_full_sync()

        endpoints = [c.args[0] for c in fake_source.fetch_collection.await_args_list]
        assert endpoints == ["/users", "/posts", "/comments"]
        assert PHASE_ORDER == ("users", "posts", "comments")

    async def test_derived_counters_after_sync(self, orchestrator, memory_store):
        await orchestrator.run_full_sync()

        user1 = await memory_store.find_by_external_id("users", 1)
        user2 = await memory_store.find_by_external_id("users", 2)
        post1 = await memory_store.find_by_external_id("posts", 1)
        assert user1["stats"]["post_count"] == 2
        assert user2["stats"]["post_count"] == 1
        assert user2["stats"]["comment_count"] == 1
        assert post1["stats"]["comment_count"] == 2

    async def test_malformed_record_is_isolated(self, orchestrator, source_data):
        """Given: 게시글 10건 중 5번째 형식 오류 / Then: errors == 1, 나머지 정상 반영"""
        posts = [{"id": i, "userId": 1, "title": f"t{i}", "body": "b"} for i in range(1, 11)]
        del posts[4]["title"]
        source_data["/posts"] = posts
        source_data["/comments"] = []

        result = await orchestrator.run_full_sync()

        assert result.success is True
        assert result.stats.posts.to_dict() == {"created": 9, "updated": 0, "errors": 1}

    async def test_missing_parent_counts_as_error(self, orchestrator, source_data, memory_store):
        source_data["/comments"].append(
            {"id": 50, "postId": 999, "name": "orphan", "email": "x@example.com", "body": "b"}
        )

        result = await orchestrator.run_full_sync()

        assert result.success is True
        assert result.stats.comments.errors == 1
        assert await memory_store.find_by_external_id("comments", 50) is None

    async def test_unexpected_exception_is_counted(self, orchestrator):
        with patch.object(
            orchestrator._mappers["posts"], "merge_record", side_effect=RuntimeError("boom")
        ):
            result = await orchestrator.run_full_sync()

        assert result.success is True
        assert result.stats.posts.errors == 3

    async def test_unhealthy_source_aborts_before_writes(self, orchestrator, fake_source, memory_store):
        fake_source.probe_health.return_value = HealthReport(healthy=False, error="unreachable endpoints: posts")

        result = await orchestrator.run_full_sync()

        assert result.success is False
        assert result.error_kind == SyncErrorKind.CONNECTIVITY
        assert result.error_code == "SYNC-002"
        fake_source.fetch_collection.assert_not_awaited()
        assert await memory_store.count("users") == 0
        assert orchestrator.last_sync_time is None
        assert orchestrator.in_progress is False

    async def test_phase_fetch_failure_aborts_run(self, orchestrator, fake_source, source_data, memory_store):
        def _fetch(endpoint, params=None):
            if endpoint == "/posts":
                raise SourceServerError(endpoint=endpoint, status=503)
            return list(source_data[endpoint])

        fake_source.fetch_collection.side_effect = _fetch

        result = await orchestrator.run_full_sync()

        assert result.success is False
        assert result.error_code == "SYNC-003"
        assert result.error_kind == SyncErrorKind.CONNECTIVITY
        # 이전 단계 결과는 유지
        assert result.stats.users.created == 2
        assert await memory_store.count("users") == 2
        assert await memory_store.count("comments") == 0
        assert orchestrator.in_progress is False


class TestSingleFlight:
    """단일 실행 보장 테스트"""

    async def test_concurrent_run_is_rejected(self, orchestrator, fake_source, source_data):
        release = asyncio.Event()

        async def _slow_fetch(endpoint, params=None):
            if endpoint == "/users":
                await release.wait()
            return list(source_data[endpoint])

        fake_source.fetch_collection.side_effect = _slow_fetch

        first = asyncio.create_task(orchestrator.run_full_sync())
        while not orchestrator.in_progress:
            await asyncio.sleep(0)

        second = await orchestrator.run_full_sync()
        collection = await orchestrator.sync_collection("posts")

        release.set()
        first_result = await first

        assert second.success is False
        assert second.error_kind == SyncErrorKind.ALREADY_IN_PROGRESS
        assert second.error_code == "SYNC-001"
        assert collection.error_kind == SyncErrorKind.ALREADY_IN_PROGRESS
        assert first_result.success is True
        assert orchestrator.in_progress is False

    async def test_status_reports_running_state(self, orchestrator, fake_source, source_data):
        release = asyncio.Event()

        async def _slow_fetch(endpoint, params=None):
            await release.wait()
            return list(source_data[endpoint])

        fake_source.fetch_collection.side_effect = _slow_fetch

        task = asyncio.create_task(orchestrator.run_full_sync())
        while not orchestrator.in_progress:
            await asyncio.sleep(0)

        status = orchestrator.get_sync_status()
        release.set()
        await task

        assert status["in_progress"] is True
        assert status["started_at"] is not None
        assert orchestrator.get_sync_status()["in_progress"] is False


class TestSyncCollection:
    """단일 컬렉션 동기화 테스트"""

    async def test_unknown_entity_type(self, orchestrator):
        result = await orchestrator.sync_collection("widgets")

        assert result.success is False
        assert result.error_kind == SyncErrorKind.UNKNOWN_ENTITY
        assert result.error == "Unsupported entity type: widgets"

    async def test_users_only(self, orchestrator, fake_source):
        result = await orchestrator.sync_collection("users")

        assert result.success is True
        assert result.stats.users.created == 2
        assert result.data == {"entity_type": "users"}
        fake_source.fetch_collection.assert_awaited_once_with("/users")
        fake_source.probe_health.assert_not_awaited()

    async def test_posts_without_users_fail_per_record(self, orchestrator):
        result = await orchestrator.sync_collection("posts")

        assert result.success is True
        assert result.stats.posts.to_dict() == {"created": 0, "updated": 0, "errors": 3}


class TestTargetedSync:
    """단건 / 배치 동기화 테스트"""

    async def test_single_entity_created(self, orchestrator):
        result = await orchestrator.sync_single_entity("users", 2)

        assert result.success is True
        assert result.stats.users.created == 1
        assert result.data["outcome"] == "created"
        assert result.data["entity"]["external_id"] == 2

    async def test_single_entity_not_found(self, orchestrator):
        result = await orchestrator.sync_single_entity("users", 404)

        assert result.success is False
        assert result.error_kind == SyncErrorKind.NOT_FOUND
        assert result.error_code == "SOURCE-007"

    async def test_single_entity_missing_dependency(self, orchestrator):
        result = await orchestrator.sync_single_entity("posts", 1)

        assert result.success is False
        assert result.error_kind == SyncErrorKind.MISSING_DEPENDENCY
        assert result.stats.posts.errors == 1

    async def test_post_succeeds_after_author_is_synced(self, orchestrator):
        before = await orchestrator.sync_single_entity("posts", 1)
        await orchestrator.sync_single_entity("users", 1)

        after = await orchestrator.sync_single_entity("posts", 1)

        assert before.error_kind == SyncErrorKind.MISSING_DEPENDENCY
        assert after.success is True
        assert after.data["outcome"] == "created"

    async def test_single_entity_unknown_type(self, orchestrator, fake_source):
        result = await orchestrator.sync_single_entity("albums", 1)

        assert result.error_kind == SyncErrorKind.UNKNOWN_ENTITY
        fake_source.fetch_one.assert_not_awaited()

    async def test_batch_reports_per_item_results(self, orchestrator, fake_source, source_data):
        fake_source.batch_fetch.return_value = [
            BatchItemResult(endpoint="/users/1", value=dict(source_data["/users"][0]), attempts=1),
            BatchItemResult(
                endpoint="/users/9",
                error=SourceNotFoundError(endpoint="/users/9", status=404),
                attempts=1,
            ),
        ]

        result = await orchestrator.sync_entities("users", [1, 9])

        assert result.success is True
        assert result.stats.users.to_dict() == {"created": 1, "updated": 0, "errors": 1}
        items = result.data["results"]
        assert [i["external_id"] for i in items] == [1, 9]
        assert items[0]["success"] is True
        assert items[1]["error_kind"] == "not_found"
        fake_source.batch_fetch.assert_awaited_once_with(
            ["/users/1", "/users/9"], concurrency=2, max_retries=2, base_delay=0.0
        )


class TestStatusAndStats:
    """상태 / 통계 조회 테스트"""

    async def test_status_after_run(self, orchestrator):
        await orchestrator.run_full_sync()

        status = orchestrator.get_sync_status()

        assert status["in_progress"] is False
        assert status["last_sync_time"] is not None
        assert status["last_result"]["success"] is True
        assert status["stats"]["comments"]["created"] == 4

    async def test_database_stats(self, orchestrator, memory_store):
        await orchestrator.run_full_sync()
        await memory_store.insert(
            "users", {"name": "manual", "username": "m", "email": "m@x.io", "sync_source": "manual"}
        )

        stats = await orchestrator.get_database_stats()

        assert stats["users"] == {"total": 3, "synced": 2}
        assert stats["posts"] == {"total": 3, "synced": 3}
        assert stats["in_progress"] is False

    async def test_health_check_delegates(self, orchestrator, healthy_report):
        report = await orchestrator.check_source_health()

        assert report is healthy_report
