"""
동기화 배치 실행

주요 모듈:
- sync_batch: 커맨드라인 동기화 / 고아 정리 / 카운터 재계산
"""

__version__ = "1.0.0"
