"""
고아 엔티티 정리

필수 부모 참조가 더 이상 존재하지 않는 엔티티를 삭제합니다.
게시글을 먼저 정리하므로 같은 실행에서 삭제된 게시글의 댓글도 함께 정리됩니다.
동기화 실행 상태와 무관하게 언제든 호출할 수 있습니다.
"""

from datetime import UTC, datetime
from typing import Any

from app.core.interfaces.storage import IEntityStore
from app.lib.logger import get_logger

from .counters import DerivedCounterMaintainer

logger = get_logger(__name__)


class OrphanCleaner:
    def __init__(self, store: IEntityStore, counters: DerivedCounterMaintainer | None = None) -> None:
        self.store = store
        self.counters = counters

    async def cleanup_orphans(self) -> dict[str, Any]:
        """
        고아 게시글 → 고아 댓글 순서로 일괄 삭제

        Returns:
            {"deleted": {"posts": int, "comments": int}, "timestamp": str}
        """
        user_ids = await self.store.distinct("users", "id")
        posts_deleted = await self.store.delete_many("posts", {"user_id": {"$nin": user_ids}})

        post_ids = await self.store.distinct("posts", "id")
        comments_deleted = await self.store.delete_many("comments", {"post_id": {"$nin": post_ids}})

        if self.counters is not None and (posts_deleted or comments_deleted):
            # 삭제된 댓글 작성자의 comment_count 반영
            await self.counters.recompute_all()

        logger.info(
            "고아 엔티티 정리 완료",
            extra={"posts_deleted": posts_deleted, "comments_deleted": comments_deleted},
        )
        return {
            "deleted": {"posts": posts_deleted, "comments": comments_deleted},
            "timestamp": datetime.now(UTC).isoformat(),
        }
