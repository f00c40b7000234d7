"""
Health check API endpoints
서비스 상태 확인 엔드포인트 (외부 API 상태는 /api/sync/health)
"""

import time
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from ..lib.environment import get_environment

router = APIRouter(tags=["Health"])

# 시작 시간 기록
start_time = time.time()


class HealthResponse(BaseModel):
    """Health 체크 응답 모델"""

    status: str
    timestamp: str
    uptime: float
    version: str = "1.0.0"
    environment: str


def get_uptime() -> float:
    """업타임 반환 (초)"""
    return time.time() - start_time


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """서비스 생존 확인"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        uptime=round(get_uptime(), 2),
        environment=get_environment(),
    )
