"""
Structured logging for the sync service
구조화된 로깅 시스템 (structlog + stdlib logging)
"""

import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, cast

import structlog
from structlog.stdlib import LoggerFactory

# 한국 시간대 (KST = UTC+9)
KST = timezone(timedelta(hours=9))

SERVICE_NAME = "content-sync"


def add_kst_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """KST(한국 시간) 타임스탬프 추가"""
    event_dict["timestamp"] = datetime.now(KST).isoformat()
    return event_dict


class SyncLogger:
    """동기화 서비스 로깅 시스템"""

    def __init__(self) -> None:
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.is_production = os.getenv("NODE_ENV", "development") == "production" or os.getenv(
            "ENVIRONMENT", ""
        ).lower() in ("production", "prod")

        if self.is_production:
            self.log_level = os.getenv("LOG_LEVEL", "WARNING").upper()

        # 파일 로그는 개발 환경에서만 (LOG_FILE_ENABLED=false 로 끌 수 있음)
        self.file_enabled = (
            not self.is_production
            and os.getenv("LOG_FILE_ENABLED", "true").lower() != "false"
        )
        self.log_dir = Path(os.getenv("LOG_DIR", "./logs"))

        self._setup_logging()

    def _setup_logging(self) -> None:
        """로깅 설정"""
        level = getattr(logging, self.log_level, logging.INFO)

        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if self.file_enabled:
            self.log_dir.mkdir(exist_ok=True, parents=True)
            handlers.append(logging.FileHandler(self.log_dir / "app.log"))

        logging.basicConfig(level=level, format="%(message)s", handlers=handlers)

        for noisy_logger in ["httpx", "httpcore", "pymongo"]:
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                add_kst_timestamp,  # type: ignore[list-item]
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                self._add_context,  # type: ignore[list-item]
                (
                    structlog.processors.JSONRenderer()
                    if self._should_use_json()
                    else structlog.dev.ConsoleRenderer()
                ),
            ],
            context_class=dict,
            logger_factory=LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _should_use_json(self) -> bool:
        """JSON 형식 사용 여부 결정"""
        return os.getenv("LOG_FORMAT", "console").lower() == "json"

    def _add_context(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        """컨텍스트 정보 추가"""
        event_dict["service"] = SERVICE_NAME
        event_dict["environment"] = os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV", "development")
        event_dict["pid"] = os.getpid()
        return event_dict

    def get_logger(self, name: str | None = None) -> structlog.stdlib.BoundLogger:
        """구조화된 로거 반환"""
        return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name or __name__))


# 프로세스당 한 번만 설정
_sync_logger = SyncLogger()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """로거 인스턴스 반환"""
    return _sync_logger.get_logger(name)
