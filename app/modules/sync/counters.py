"""
파생 카운터 유지

비정규화 집계 필드를 원본 컬렉션 count 로 다시 계산합니다 (+1/-1 증감 없음).
- users.stats.post_count = count(posts where user_id = X)
- users.stats.comment_count = count(comments where user_id = X)
- posts.stats.comment_count = count(comments where post_id = X)
"""

from datetime import UTC, datetime

from app.core.interfaces.storage import IEntityStore
from app.lib.logger import get_logger

logger = get_logger(__name__)


class DerivedCounterMaintainer:
    def __init__(self, store: IEntityStore) -> None:
        self.store = store

    async def update_user_post_count(self, user_id: str) -> int:
        post_count = await self.store.count("posts", {"user_id": user_id})
        await self.store.update_fields(
            "users",
            user_id,
            {"stats.post_count": post_count, "stats.last_activity": datetime.now(UTC)},
        )
        logger.debug("사용자 게시글 수 갱신", extra={"user_id": user_id, "post_count": post_count})
        return post_count

    async def update_user_comment_count(self, user_id: str) -> int:
        comment_count = await self.store.count("comments", {"user_id": user_id})
        await self.store.update_fields("users", user_id, {"stats.comment_count": comment_count})
        return comment_count

    async def update_post_comment_count(self, post_id: str) -> int:
        comment_count = await self.store.count("comments", {"post_id": post_id})
        await self.store.update_fields("posts", post_id, {"stats.comment_count": comment_count})
        logger.debug("게시글 댓글 수 갱신", extra={"post_id": post_id, "comment_count": comment_count})
        return comment_count

    async def recompute_all(self) -> dict[str, int]:
        """모든 사용자/게시글 카운터 재계산 (유지보수용)"""
        user_ids = await self.store.distinct("users", "id")
        for user_id in user_ids:
            await self.update_user_post_count(user_id)
            await self.update_user_comment_count(user_id)

        post_ids = await self.store.distinct("posts", "id")
        for post_id in post_ids:
            await self.update_post_comment_count(post_id)

        logger.info("파생 카운터 전체 재계산 완료", extra={"users": len(user_ids), "posts": len(post_ids)})
        return {"users": len(user_ids), "posts": len(post_ids)}
