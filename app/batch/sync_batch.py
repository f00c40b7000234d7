"""
동기화 배치 실행기

HTTP 서버 없이 커맨드라인에서 동기화를 실행합니다.

사용 예시:
    python -m app.batch.sync_batch                 # 전체 동기화
    python -m app.batch.sync_batch --entity posts  # 게시글만
    python -m app.batch.sync_batch --cleanup       # 동기화 후 고아 엔티티 정리
    python -m app.batch.sync_batch --entity none --recompute
"""

import argparse
import asyncio
from typing import Any

from app.core.di_container import AppContainer, cleanup_resources, initialize_resources
from app.lib.config_loader import load_config
from app.lib.logger import get_logger
from app.modules.sync.results import SyncResult

logger = get_logger(__name__)


async def run_sync_batch(
    entity: str = "all",
    cleanup: bool = False,
    recompute: bool = False,
    container: AppContainer | None = None,
) -> dict[str, Any]:
    """
    동기화 배치 실행

    Args:
        entity: "all", 엔티티 타입(users / posts / comments), 또는 "none" (동기화 생략)
        cleanup: 동기화 후 고아 엔티티 정리 여부
        recompute: 파생 카운터 전체 재계산 여부
        container: 테스트용 주입 Container (없으면 설정 로드 후 생성)

    Returns:
        {"sync": SyncResult | None, "cleanup": dict | None, "recompute": dict | None}
    """
    owns_container = container is None
    if container is None:
        container = AppContainer()
        container.config.from_dict(load_config())

    outcome: dict[str, Any] = {"sync": None, "cleanup": None, "recompute": None}
    try:
        await initialize_resources(container)
        orchestrator = container.sync_orchestrator()

        if entity == "all":
            outcome["sync"] = await orchestrator.run_full_sync()
        elif entity != "none":
            outcome["sync"] = await orchestrator.sync_collection(entity)

        if cleanup:
            outcome["cleanup"] = await orchestrator.cleanup_orphans()
        if recompute:
            outcome["recompute"] = await container.counter_maintainer().recompute_all()
    finally:
        if owns_container:
            await cleanup_resources(container)

    return outcome


def _print_summary(outcome: dict[str, Any]) -> None:
    print("\n" + "=" * 60)
    print("📊 동기화 결과 요약")
    print("=" * 60)

    result: SyncResult | None = outcome["sync"]
    if result is not None:
        status = "✅" if result.success else "❌"
        print(f"{status} 동기화 ({result.duration_ms}ms)")
        for entity_type, stats in result.stats.to_dict().items():
            print(
                f"   {entity_type}: 생성 {stats['created']} / 갱신 {stats['updated']} / 오류 {stats['errors']}"
            )
        if result.error:
            print(f"   오류: {result.error}")

    if outcome["cleanup"] is not None:
        deleted = outcome["cleanup"]["deleted"]
        print(f"🧹 고아 정리: 게시글 {deleted['posts']}건, 댓글 {deleted['comments']}건 삭제")

    if outcome["recompute"] is not None:
        counts = outcome["recompute"]
        print(f"🔢 카운터 재계산: 사용자 {counts['users']}명, 게시글 {counts['posts']}건")


async def main() -> int:
    """메인 실행 함수"""
    parser = argparse.ArgumentParser(description="외부 API 동기화 배치")
    parser.add_argument(
        "--entity",
        "-e",
        default="all",
        choices=["all", "users", "posts", "comments", "none"],
        help="동기화할 엔티티 타입 (all: 전체, none: 동기화 생략)",
    )
    parser.add_argument("--cleanup", action="store_true", help="동기화 후 고아 엔티티 정리")
    parser.add_argument("--recompute", action="store_true", help="파생 카운터 전체 재계산")
    args = parser.parse_args()

    outcome = await run_sync_batch(entity=args.entity, cleanup=args.cleanup, recompute=args.recompute)
    _print_summary(outcome)

    result: SyncResult | None = outcome["sync"]
    return 0 if result is None or result.success else 1


def cli() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
