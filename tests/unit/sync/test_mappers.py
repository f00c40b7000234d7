"""
엔티티 매퍼 단위 테스트

external_id 기준 병합(Created / Updated), 파생 필드, 부모 참조 해석,
레코드 단위 실패(MissingDependency / InvalidRecord)를 검증합니다.
"""

import pytest

from app.lib.errors import SyncErrorKind
from app.modules.sync.mappers import CommentMapper
from app.modules.sync.results import MergeOutcome


def user_record(user_id: int = 1, **overrides):
    record = {
        "id": user_id,
        "name": f"  User {user_id}  ",
        "username": f"User{user_id}",
        "email": f"User{user_id}@Example.com",
        "company": {"name": "Acme", "catchPhrase": "hello"},
        "unexpected": "ignored",
    }
    record.update(overrides)
    return record


def post_record(post_id: int = 1, user_id: int = 1, **overrides):
    record = {"id": post_id, "userId": user_id, "title": "Hello World", "body": "one two three"}
    record.update(overrides)
    return record


def comment_record(comment_id: int = 1, post_id: int = 1, **overrides):
    record = {
        "id": comment_id,
        "postId": post_id,
        "name": "nice post",
        "email": "reader@example.com",
        "body": "great read",
    }
    record.update(overrides)
    return record


class TestUserMapper:
    """사용자 병합 테스트"""

    async def test_creates_new_user(self, user_mapper, memory_store):
        result = await user_mapper.merge_record(user_record())

        assert result.ok
        assert result.outcome == MergeOutcome.CREATED
        assert result.entity.name == "User 1"
        assert result.entity.username == "user1"
        assert result.entity.email == "user1@example.com"
        assert result.entity.company == {"name": "Acme", "catch_phrase": "hello"}
        assert result.entity.sync_source == "api"
        assert result.entity.synced_at is not None
        assert await memory_store.count("users") == 1

    async def test_second_merge_updates_same_entity(self, user_mapper, memory_store):
        first = await user_mapper.merge_record(user_record())
        second = await user_mapper.merge_record(user_record(name="Renamed"))

        assert second.outcome == MergeOutcome.UPDATED
        assert second.entity.id == first.entity.id
        assert second.entity.name == "Renamed"
        assert await memory_store.count("users") == 1

    async def test_update_keeps_derived_counters(self, user_mapper, post_mapper, memory_store):
        await user_mapper.merge_record(user_record())
        await post_mapper.merge_record(post_record())

        result = await user_mapper.merge_record(user_record())

        assert result.entity.stats.post_count == 1

    async def test_missing_email_is_invalid_record(self, user_mapper, memory_store):
        record = user_record()
        del record["email"]

        result = await user_mapper.merge_record(record)

        assert result.ok is False
        assert result.error_kind == SyncErrorKind.INVALID_RECORD
        assert result.error_code == "SYNC-005"
        assert result.external_id == 1
        assert "email" in result.error
        assert await memory_store.count("users") == 0

    async def test_non_integer_id_is_invalid_record(self, user_mapper):
        result = await user_mapper.merge_record(user_record(user_id="abc"))

        assert result.error_kind == SyncErrorKind.INVALID_RECORD
        assert result.external_id is None


class TestPostMapper:
    """게시글 병합 테스트"""

    @pytest.fixture
    async def author(self, user_mapper):
        result = await user_mapper.merge_record(user_record())
        return result.entity

    async def test_creates_post_with_derived_fields(self, post_mapper, author, memory_store):
        result = await post_mapper.merge_record(post_record(title="Hello, World!", body="one two three"))

        post = result.entity
        assert result.outcome == MergeOutcome.CREATED
        assert post.user_id == author.id
        assert post.external_user_id == 1
        assert post.slug == "hello-world"
        assert post.excerpt == "one two three"
        assert post.word_count == 3
        assert post.reading_time_seconds == 1
        assert post.version == 1
        assert post.status == "published"
        assert post.published_at is not None

        user_doc = await memory_store.find_by_id("users", author.id)
        assert user_doc["stats"]["post_count"] == 1
        assert user_doc["stats"]["last_activity"] is not None

    async def test_unchanged_content_keeps_version_and_published_at(self, post_mapper, author):
        first = await post_mapper.merge_record(post_record())
        second = await post_mapper.merge_record(post_record())

        assert second.outcome == MergeOutcome.UPDATED
        assert second.entity.version == 1
        assert second.entity.published_at == first.entity.published_at

    async def test_changed_title_bumps_version(self, post_mapper, author):
        await post_mapper.merge_record(post_record())
        result = await post_mapper.merge_record(post_record(title="Brand New Title"))

        assert result.entity.version == 2
        assert result.entity.slug == "brand-new-title"

    async def test_missing_author_is_missing_dependency(self, post_mapper, memory_store):
        result = await post_mapper.merge_record(post_record(user_id=99))

        assert result.ok is False
        assert result.error_kind == SyncErrorKind.MISSING_DEPENDENCY
        assert result.error_code == "SYNC-004"
        assert result.error == "User with external ID 99 not found"
        assert await memory_store.count("posts") == 0

    async def test_reassigned_post_updates_both_authors(self, user_mapper, post_mapper, author, memory_store):
        other = (await user_mapper.merge_record(user_record(2))).entity
        await post_mapper.merge_record(post_record(user_id=1))

        await post_mapper.merge_record(post_record(user_id=2))

        assert (await memory_store.find_by_id("users", author.id))["stats"]["post_count"] == 0
        assert (await memory_store.find_by_id("users", other.id))["stats"]["post_count"] == 1

    async def test_long_body_excerpt_is_truncated(self, post_mapper, author):
        body = "word " * 100

        result = await post_mapper.merge_record(post_record(body=body))

        assert result.entity.excerpt.endswith("...")
        assert len(result.entity.excerpt) <= 203
        assert result.entity.word_count == 100
        assert result.entity.reading_time_seconds == 30


class TestCommentMapper:
    """댓글 병합 테스트"""

    @pytest.fixture
    async def post(self, user_mapper, post_mapper):
        await user_mapper.merge_record(user_record())
        return (await post_mapper.merge_record(post_record())).entity

    async def test_creates_comment_and_updates_post_counter(self, comment_mapper, post, memory_store):
        result = await comment_mapper.merge_record(comment_record())

        assert result.outcome == MergeOutcome.CREATED
        assert result.entity.post_id == post.id
        assert result.entity.depth == 0
        assert result.entity.parent_id is None
        assert result.entity.status == "approved"
        assert (await memory_store.find_by_id("posts", post.id))["stats"]["comment_count"] == 1

    async def test_author_is_linked_by_email(self, comment_mapper, post, memory_store):
        result = await comment_mapper.merge_record(comment_record(email="USER1@example.com"))

        user_doc = (await memory_store.find("users", {"external_id": 1}))[0]
        assert result.entity.user_id == user_doc["id"]
        assert user_doc["stats"]["comment_count"] == 1

    async def test_reply_depth_follows_parent(self, comment_mapper, post):
        parent = (await comment_mapper.merge_record(comment_record(1))).entity

        reply = await comment_mapper.merge_record(comment_record(2, parentId=1))

        assert reply.entity.parent_id == parent.id
        assert reply.entity.depth == 1

    async def test_missing_parent_comment(self, comment_mapper, post):
        result = await comment_mapper.merge_record(comment_record(2, parentId=77))

        assert result.error_kind == SyncErrorKind.MISSING_DEPENDENCY
        assert result.error == "Comment with external ID 77 not found"

    async def test_missing_post(self, comment_mapper, post):
        result = await comment_mapper.merge_record(comment_record(postId=55))

        assert result.error_kind == SyncErrorKind.MISSING_DEPENDENCY
        assert "Post" in result.error

    async def test_depth_limit(self, memory_store, counters, post):
        mapper = CommentMapper(memory_store, counters, max_depth=1)
        await mapper.merge_record(comment_record(1))
        await mapper.merge_record(comment_record(2, parentId=1))

        result = await mapper.merge_record(comment_record(3, parentId=2))

        assert result.ok is False
        assert result.error_kind == SyncErrorKind.INVALID_RECORD
        assert result.error_code == "SYNC-007"
        assert await memory_store.count("comments") == 2

    async def test_self_reply_is_rejected_on_every_merge(self, comment_mapper, post, memory_store):
        """자기 자신을 부모로 가리키는 댓글은 재병합해도 같은 결과"""
        results = [await comment_mapper.merge_record(comment_record(1, parentId=1)) for _ in range(3)]

        assert [r.error_code for r in results] == ["SYNC-005"] * 3
        assert all(r.error_kind == SyncErrorKind.INVALID_RECORD for r in results)
        assert await memory_store.count("comments") == 0

    async def test_reply_cycle_is_rejected_and_depth_stays_stable(self, comment_mapper, post, memory_store):
        await comment_mapper.merge_record(comment_record(1))
        await comment_mapper.merge_record(comment_record(2, parentId=1))

        cyclic = await comment_mapper.merge_record(comment_record(1, parentId=2))
        resynced = [await comment_mapper.merge_record(comment_record(2, parentId=1)) for _ in range(3)]

        assert cyclic.error_kind == SyncErrorKind.INVALID_RECORD
        assert cyclic.error_code == "SYNC-005"
        assert [(r.outcome, r.entity.depth) for r in resynced] == [(MergeOutcome.UPDATED, 1)] * 3
        root = await memory_store.find_by_external_id("comments", 1)
        assert root["parent_id"] is None
        assert root["depth"] == 0

    async def test_update_keeps_comment_count_stable(self, comment_mapper, post, memory_store):
        await comment_mapper.merge_record(comment_record())
        result = await comment_mapper.merge_record(comment_record(body="edited"))

        assert result.outcome == MergeOutcome.UPDATED
        assert result.entity.body == "edited"
        assert (await memory_store.find_by_id("posts", post.id))["stats"]["comment_count"] == 1
