"""
동기화 엔진

외부 source-of-truth API 에서 users / posts / comments 컬렉션을 가져와
로컬 저장소에 external_id 기준으로 병합합니다.
"""

from .cleanup import OrphanCleaner
from .counters import DerivedCounterMaintainer
from .mappers import CommentMapper, EntityMapper, PostMapper, UserMapper
from .orchestrator import PHASE_ORDER, SyncOrchestrator
from .results import BatchItemResult, EntityStats, HealthReport, MergeOutcome, MergeResult, SyncResult, SyncStats
from .source_client import SourceAPIClient

__all__ = [
    "SourceAPIClient",
    "EntityMapper",
    "UserMapper",
    "PostMapper",
    "CommentMapper",
    "DerivedCounterMaintainer",
    "OrphanCleaner",
    "SyncOrchestrator",
    "PHASE_ORDER",
    "SyncResult",
    "SyncStats",
    "EntityStats",
    "MergeResult",
    "MergeOutcome",
    "HealthReport",
    "BatchItemResult",
]
