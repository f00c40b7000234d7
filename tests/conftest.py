"""
테스트 공통 설정 및 픽스처

pytest conftest.py - 모든 테스트에서 공유되는 설정과 픽스처 정의.
외부 API 는 MagicMock(spec=SourceAPIClient), 저장소는 InMemoryEntityStore 로 대체합니다.
"""

import copy
import os
import sys
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트 경로를 sys.path에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def pytest_configure(config: pytest.Config) -> None:
    """
    pytest 설정 훅

    테스트 환경에서 파일 로그와 외부 연결 비활성화.
    """
    # 테스트 환경임을 명시 (store.provider=memory)
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_FILE_ENABLED"] = "false"


@pytest.fixture(scope="session")
def project_root_path() -> Path:
    """프로젝트 루트 경로"""
    return project_root


# ============================================================================
# 외부 API 샘플 데이터 (JSONPlaceholder 형태)
# ============================================================================


def _user(user_id: int) -> dict[str, Any]:
    return {
        "id": user_id,
        "name": f"User {user_id}",
        "username": f"User{user_id}",
        "email": f"User{user_id}@Example.com",
        "phone": "010-0000-0000",
        "website": "example.com",
        "address": {
            "street": "Main St",
            "suite": f"Apt. {user_id}",
            "city": "Seoul",
            "zipcode": "04524",
            "geo": {"lat": "37.56", "lng": "126.97"},
        },
        "company": {"name": "Acme", "catchPhrase": "Sync all the things", "bs": "e-markets"},
    }


def _post(post_id: int, user_id: int) -> dict[str, Any]:
    return {
        "id": post_id,
        "userId": user_id,
        "title": f"Post Title {post_id}",
        "body": f"body of post {post_id} with a few words",
    }


def _comment(comment_id: int, post_id: int, email: str = "reader@example.com") -> dict[str, Any]:
    return {
        "id": comment_id,
        "postId": post_id,
        "name": f"comment {comment_id}",
        "email": email,
        "body": f"comment body {comment_id}",
    }


@pytest.fixture
def source_data() -> dict[str, list[dict[str, Any]]]:
    """
    엔드포인트별 외부 레코드

    users 2명, posts 3건 (user1: 2건, user2: 1건), comments 4건
    (comment 4 작성자는 user2 이메일)
    """
    return {
        "/users": [_user(1), _user(2)],
        "/posts": [_post(1, 1), _post(2, 1), _post(3, 2)],
        "/comments": [
            _comment(1, 1),
            _comment(2, 1),
            _comment(3, 2),
            _comment(4, 3, email="user2@example.com"),
        ],
    }


@pytest.fixture
def healthy_report():
    from app.modules.sync.results import HealthReport

    return HealthReport(
        healthy=True,
        endpoints={"users": True, "posts": True, "comments": True},
        success_rate=100.0,
    )


@pytest.fixture
def fake_source(source_data, healthy_report) -> MagicMock:
    """
    SourceAPIClient Mock

    fetch_collection 은 source_data 의 복사본을 반환하고,
    fetch_one 은 "/{type}/{id}" 에 해당하는 레코드를 찾아 반환합니다.
    """
    from app.lib.errors import SourceNotFoundError
    from app.modules.sync.source_client import SourceAPIClient

    client = MagicMock(spec=SourceAPIClient)
    client.probe_health.return_value = healthy_report

    def _fetch_collection(endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return copy.deepcopy(source_data[endpoint])

    def _fetch_one(endpoint: str) -> dict[str, Any]:
        collection, _, record_id = endpoint.rpartition("/")
        for record in source_data.get(collection, []):
            if str(record["id"]) == record_id:
                return copy.deepcopy(record)
        raise SourceNotFoundError(endpoint=endpoint, status=404)

    client.fetch_collection.side_effect = _fetch_collection
    client.fetch_one.side_effect = _fetch_one
    return client


# ============================================================================
# 저장소 / 동기화 컴포넌트
# ============================================================================


@pytest.fixture
def memory_store():
    from app.infrastructure.storage.entity.memory_store import InMemoryEntityStore

    return InMemoryEntityStore()


@pytest.fixture
def counters(memory_store):
    from app.modules.sync.counters import DerivedCounterMaintainer

    return DerivedCounterMaintainer(memory_store)


@pytest.fixture
def user_mapper(memory_store, counters):
    from app.modules.sync.mappers import UserMapper

    return UserMapper(memory_store, counters)


@pytest.fixture
def post_mapper(memory_store, counters):
    from app.modules.sync.mappers import PostMapper

    return PostMapper(memory_store, counters)


@pytest.fixture
def comment_mapper(memory_store, counters):
    from app.modules.sync.mappers import CommentMapper

    return CommentMapper(memory_store, counters, max_depth=10)


@pytest.fixture
def orphan_cleaner(memory_store, counters):
    from app.modules.sync.cleanup import OrphanCleaner

    return OrphanCleaner(memory_store, counters)


@pytest.fixture
def orchestrator(fake_source, memory_store, user_mapper, post_mapper, comment_mapper, orphan_cleaner):
    """인메모리 저장소 + Mock 외부 API 로 구성한 SyncOrchestrator"""
    from app.modules.sync.orchestrator import SyncOrchestrator

    return SyncOrchestrator(
        source_client=fake_source,
        store=memory_store,
        user_mapper=user_mapper,
        post_mapper=post_mapper,
        comment_mapper=comment_mapper,
        orphan_cleaner=orphan_cleaner,
        batch_concurrency=2,
        max_retries=2,
        retry_base_delay_seconds=0.0,
    )
