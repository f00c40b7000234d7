"""
엔티티 매퍼 (Users / Posts / Comments)

외부 레코드 1건을 external_id 기준으로 로컬 엔티티 1건에 병합합니다.

알고리즘 (모든 엔티티 공통):
0. (Post / Comment) 부모 엔티티를 external_id 로 조회. 없으면 MISSING_DEPENDENCY
1. external_id 로 기존 엔티티 조회
2. 있으면 매핑 필드 덮어쓰기 → Updated, 없으면 새로 생성 → Created
3. synced_at = now, sync_source = api 로 저장 후 파생 카운터 재계산

결과는 항상 MergeResult 로 반환하며 예외를 던지지 않습니다.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from app.core.interfaces.storage import IEntityStore
from app.lib.errors import ErrorCode, SyncException, get_error_message, kind_for_code
from app.lib.logger import get_logger

from .counters import DerivedCounterMaintainer
from .models import (
    Comment,
    ExternalComment,
    ExternalPost,
    ExternalRecord,
    ExternalUser,
    Post,
    SyncSource,
    User,
    count_words,
)
from .results import MergeOutcome, MergeResult

logger = get_logger(__name__)


class EntityMapper(ABC):
    """엔티티 매퍼 기반 클래스"""

    entity_type: str = ""
    external_model: type[ExternalRecord] = ExternalRecord

    def __init__(self, store: IEntityStore, counters: DerivedCounterMaintainer) -> None:
        self.store = store
        self.counters = counters

    async def merge_record(self, raw: dict[str, Any] | ExternalRecord) -> MergeResult:
        """외부 레코드 1건 병합"""
        external_id = raw.id if isinstance(raw, ExternalRecord) else _guess_id(raw)
        try:
            record = raw if isinstance(raw, ExternalRecord) else self.external_model.model_validate(raw)
        except ValidationError as e:
            return self._failure(
                external_id,
                ErrorCode.SYNC_005,
                entity_type=self.entity_type,
                reason=_summarize_validation(e),
            )

        try:
            return await self._merge(record)
        except SyncException as e:
            logger.error(
                f"{self.entity_type} 병합 실패: {e}",
                extra={"entity_type": self.entity_type, "external_id": external_id, "error_code": e.error_code},
            )
            return MergeResult.failure(self.entity_type, external_id, e.kind, str(e), e.error_code)

    @abstractmethod
    async def _merge(self, record: Any) -> MergeResult:
        pass

    def _failure(self, external_id: int | None, code: ErrorCode, **context: Any) -> MergeResult:
        return MergeResult.failure(
            self.entity_type,
            external_id,
            kind_for_code(code),
            get_error_message(code.value, lang="en", **context),
            code.value,
        )

    def _missing_parent(self, external_id: int, parent_type: str, parent_external_id: int) -> MergeResult:
        return self._failure(
            external_id,
            ErrorCode.SYNC_004,
            parent_type=parent_type,
            parent_external_id=parent_external_id,
        )


def _guess_id(raw: Any) -> int | None:
    if isinstance(raw, dict) and isinstance(raw.get("id"), int):
        return int(raw["id"])
    return None


def _summarize_validation(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


class UserMapper(EntityMapper):
    entity_type = "users"
    external_model = ExternalUser

    async def _merge(self, record: ExternalUser) -> MergeResult:
        existing = await self.store.find_by_external_id("users", record.id)

        user = User(
            external_id=record.id,
            name=record.name.strip(),
            username=record.username.strip().lower(),
            email=record.email.strip().lower(),
            phone=record.phone,
            website=record.website,
            address=record.address.model_dump(exclude_none=True) if record.address else {},
            company=record.company.model_dump(exclude_none=True) if record.company else {},
            sync_source=SyncSource.API.value,
            synced_at=datetime.now(UTC),
        )
        fields = user.to_document()
        if existing is not None:
            # 카운터는 DerivedCounterMaintainer 만 갱신
            fields.pop("stats")
        saved = await self.store.upsert("users", record.id, fields)

        outcome = MergeOutcome.UPDATED if existing is not None else MergeOutcome.CREATED
        logger.debug(f"{outcome.value} user: {user.username}", extra={"external_id": record.id})
        return MergeResult.success("users", record.id, outcome, User.from_document(saved))


class PostMapper(EntityMapper):
    entity_type = "posts"
    external_model = ExternalPost

    async def _merge(self, record: ExternalPost) -> MergeResult:
        user_doc = await self.store.find_by_external_id("users", record.user_id)
        if user_doc is None:
            return self._missing_parent(record.id, "User", record.user_id)

        existing = await self.store.find_by_external_id("posts", record.id)
        now = datetime.now(UTC)

        post = Post(
            external_id=record.id,
            user_id=user_doc["id"],
            external_user_id=record.user_id,
            title=record.title.strip(),
            body=record.body.strip(),
            published_at=now,
            sync_source=SyncSource.API.value,
            synced_at=now,
        )
        post.refresh_derived()
        fields = post.to_document()

        previous_user_id: str | None = None
        if existing is not None:
            previous = Post.from_document(existing)
            fields.pop("stats")
            fields["published_at"] = previous.published_at or now
            content_changed = previous.title != post.title or previous.body != post.body
            fields["version"] = previous.version + 1 if content_changed else previous.version
            previous_user_id = previous.user_id

        saved = await self.store.upsert("posts", record.id, fields)

        await self.counters.update_user_post_count(user_doc["id"])
        if previous_user_id and previous_user_id != user_doc["id"]:
            await self.counters.update_user_post_count(previous_user_id)

        outcome = MergeOutcome.UPDATED if existing is not None else MergeOutcome.CREATED
        logger.debug(f"{outcome.value} post: {post.title}", extra={"external_id": record.id})
        return MergeResult.success("posts", record.id, outcome, Post.from_document(saved))


class CommentMapper(EntityMapper):
    entity_type = "comments"
    external_model = ExternalComment

    def __init__(
        self,
        store: IEntityStore,
        counters: DerivedCounterMaintainer,
        max_depth: int = 10,
    ) -> None:
        super().__init__(store, counters)
        self.max_depth = max_depth

    async def _ancestor_count(self, external_id: int, parent_doc: dict[str, Any]) -> int | None:
        """
        부모 체인을 따라가며 조상 수(= 새 depth) 계산

        체인에 자기 자신이 나오거나 이미 지나간 댓글이 다시 나오면 순환으로 보고 None.
        max_depth 를 넘으면 그 시점의 값을 반환 (호출자가 SYNC-007 처리).
        """
        seen: set[str] = set()
        current: dict[str, Any] | None = parent_doc
        depth = 0
        while current is not None:
            if current.get("external_id") == external_id or current["id"] in seen:
                return None
            seen.add(current["id"])
            depth += 1
            if depth > self.max_depth or not current.get("parent_id"):
                return depth
            current = await self.store.find_by_id("comments", current["parent_id"])
        return depth

    async def _merge(self, record: ExternalComment) -> MergeResult:
        post_doc = await self.store.find_by_external_id("posts", record.post_id)
        if post_doc is None:
            return self._missing_parent(record.id, "Post", record.post_id)

        parent_id: str | None = None
        depth = 0
        if record.parent_id is not None:
            if record.parent_id == record.id:
                return self._failure(
                    record.id, ErrorCode.SYNC_005, entity_type="comments", reason="comment replies to itself"
                )
            parent_doc = await self.store.find_by_external_id("comments", record.parent_id)
            if parent_doc is None:
                return self._missing_parent(record.id, "Comment", record.parent_id)
            ancestors = await self._ancestor_count(record.id, parent_doc)
            if ancestors is None:
                return self._failure(
                    record.id,
                    ErrorCode.SYNC_005,
                    entity_type="comments",
                    reason=f"reply chain through comment {record.parent_id} forms a cycle",
                )
            depth = ancestors
            if depth > self.max_depth:
                return self._failure(record.id, ErrorCode.SYNC_007, depth=depth, max_depth=self.max_depth)
            parent_id = parent_doc["id"]

        email = record.email.strip().lower()
        authors = await self.store.find("users", {"email": email})
        user_id = authors[0]["id"] if authors else None

        existing = await self.store.find_by_external_id("comments", record.id)

        comment = Comment(
            external_id=record.id,
            post_id=post_doc["id"],
            external_post_id=record.post_id,
            user_id=user_id,
            name=record.name.strip(),
            email=email,
            body=record.body.strip(),
            parent_id=parent_id,
            depth=depth,
            word_count=count_words(record.body),
            sync_source=SyncSource.API.value,
            synced_at=datetime.now(UTC),
        )
        saved = await self.store.upsert("comments", record.id, comment.to_document())

        previous = Comment.from_document(existing) if existing is not None else None
        await self.counters.update_post_comment_count(post_doc["id"])
        if previous and previous.post_id != post_doc["id"]:
            await self.counters.update_post_comment_count(previous.post_id)
        if user_id:
            await self.counters.update_user_comment_count(user_id)
        if previous and previous.user_id and previous.user_id != user_id:
            await self.counters.update_user_comment_count(previous.user_id)

        outcome = MergeOutcome.UPDATED if existing is not None else MergeOutcome.CREATED
        logger.debug(f"{outcome.value} comment: {comment.name}", extra={"external_id": record.id})
        return MergeResult.success("comments", record.id, outcome, Comment.from_document(saved))
