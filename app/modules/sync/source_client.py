"""
외부 소스 API 클라이언트

외부 source-of-truth API(JSONPlaceholder 호환)에서 레코드를 안정적으로 가져오는 모듈.
로컬 엔티티에 대해서는 알지 못하며, 전송 계층 세부 사항은 분류된 예외로만 노출합니다.

주요 기능:
- fetch_collection / fetch_one: 단일 요청, 실패 시 SourceAPIError 하위 예외
- probe_health: 대표 엔드포인트 병렬 조회 (동기화 사전 점검)
- test_connection: /users/1 단건 연결 확인
- batch_fetch: 동시성 제한 그룹 + 지수 백오프 재시도
"""

import asyncio
import socket
import time
from collections.abc import Sequence
from typing import Any

import httpx

from app.lib.errors import (
    SourceAPIError,
    SourceClientError,
    SourceNotFoundError,
    SourceRateLimitError,
    SourceResponseError,
    SourceServerError,
    SourceTransportError,
)
from app.lib.logger import get_logger

from .results import BatchItemResult, HealthReport

logger = get_logger(__name__)

DEFAULT_HEALTH_ENDPOINTS = ("/users/1", "/posts/1", "/comments/1")


def _has_cause(error: BaseException, cause_type: type[BaseException]) -> bool:
    """__cause__ / __context__ 체인에 cause_type 이 있는지 확인 (httpx → httpcore → OSError)"""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, cause_type):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def classify_transport_error(error: httpx.RequestError, endpoint: str) -> SourceTransportError:
    """httpx 전송 예외 → reason 분류 (timeout / host_not_found / connection_refused / network)"""
    if isinstance(error, httpx.TimeoutException):
        reason = "timeout"
    elif isinstance(error, httpx.ConnectError):
        message = str(error).lower()
        if _has_cause(error, socket.gaierror):
            reason = "host_not_found"
        elif _has_cause(error, ConnectionRefusedError) or "refused" in message:
            reason = "connection_refused"
        elif (
            # 원인 예외가 보존되지 않은 경우의 메시지 기반 판별
            "name or service not known" in message
            or "nodename nor servname" in message
            or "getaddrinfo" in message
            or "name resolution" in message
        ):
            reason = "host_not_found"
        else:
            reason = "network"
    else:
        reason = "network"
    return SourceTransportError(endpoint=endpoint, reason=reason, detail=str(error))


def _health_report_keys(health_endpoints: Sequence[str]) -> list[str]:
    """헬스 리포트 키: 컬렉션 이름, 같은 컬렉션이 중복되면 엔드포인트 경로"""
    names = [ep.strip("/").split("/")[0] or ep for ep in health_endpoints]
    return [ep if names.count(name) > 1 else name for ep, name in zip(health_endpoints, names, strict=True)]


def classify_status_error(response: httpx.Response, endpoint: str) -> SourceAPIError:
    """2xx 가 아닌 응답 → 상태 코드별 예외"""
    status = response.status_code
    reason = response.reason_phrase or f"HTTP {status}"
    if status == 429:
        return SourceRateLimitError(endpoint=endpoint, status=status, reason=reason)
    if status >= 500:
        return SourceServerError(endpoint=endpoint, status=status, reason=reason)
    if status == 404:
        return SourceNotFoundError(endpoint=endpoint, status=status, reason=reason)
    return SourceClientError(endpoint=endpoint, status=status, reason=reason)


class SourceAPIClient:
    """
    외부 소스 API 클라이언트

    사용 예시:
        >>> client = SourceAPIClient(base_url="https://jsonplaceholder.typicode.com")
        >>> users = await client.fetch_collection("/users")
        >>> results = await client.batch_fetch(["/posts/1", "/posts/2"])
        >>> await client.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        user_agent: str = "content-sync/1.0.0",
        health_endpoints: Sequence[str] | None = None,
        health_timeout_seconds: float = 10.0,
        batch_concurrency: int = 5,
        max_retries: int = 3,
        retry_base_delay_seconds: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self.health_endpoints = list(health_endpoints or DEFAULT_HEALTH_ENDPOINTS)
        self.health_timeout_seconds = health_timeout_seconds
        self.batch_concurrency = batch_concurrency
        self.max_retries = max_retries
        self.retry_base_delay_seconds = retry_base_delay_seconds

        self._client = client

        logger.info(
            "SourceAPIClient 초기화 완료",
            extra={"base_url": self.base_url, "timeout_seconds": timeout_seconds},
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """httpx 클라이언트 지연 초기화 (Lazy Initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("SourceAPIClient HTTP 클라이언트 종료")

    # ========================================================================
    # 단일 요청
    # ========================================================================

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET 요청 1회 (재시도 없음)

        Raises:
            SourceTransportError: 타임아웃 / 호스트 없음 / 연결 거부 / 네트워크 오류
            SourceRateLimitError, SourceServerError, SourceNotFoundError, SourceClientError
            SourceResponseError: JSON 이 아닌 응답
        """
        client = await self._get_client()
        start = time.perf_counter()
        try:
            response = await client.get(endpoint, params=params)
        except httpx.RequestError as e:
            error = classify_transport_error(e, endpoint)
            logger.warning(
                f"외부 API 요청 실패: {endpoint}",
                extra={"endpoint": endpoint, "reason": error.reason, "error_code": error.error_code},
            )
            raise error from e

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        if not response.is_success:
            error = classify_status_error(response, endpoint)
            logger.warning(
                f"외부 API 오류 응답: {endpoint} (status={response.status_code})",
                extra={"endpoint": endpoint, "status": response.status_code, "error_code": error.error_code},
            )
            raise error

        logger.debug(
            f"외부 API 응답: {endpoint}",
            extra={"endpoint": endpoint, "status": response.status_code, "elapsed_ms": elapsed_ms},
        )
        try:
            return response.json()
        except ValueError as e:
            raise SourceResponseError(endpoint=endpoint, reason="response body is not valid JSON") from e

    async def fetch_collection(self, endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """컬렉션 전체 조회 (예: /users). 응답은 JSON 배열이어야 함"""
        data = await self._get(endpoint, params)
        if not isinstance(data, list):
            raise SourceResponseError(endpoint=endpoint, reason="expected a JSON array")
        logger.info(f"컬렉션 조회 완료: {endpoint}", extra={"endpoint": endpoint, "count": len(data)})
        return data

    async def fetch_one(self, endpoint: str) -> dict[str, Any]:
        """단건 조회 (예: /posts/1). 응답은 JSON 객체여야 함"""
        data = await self._get(endpoint)
        if not isinstance(data, dict):
            raise SourceResponseError(endpoint=endpoint, reason="expected a JSON object")
        return data

    # ========================================================================
    # 상태 점검
    # ========================================================================

    async def probe_health(self) -> HealthReport:
        """
        대표 엔드포인트 병렬 조회로 외부 API 상태 점검

        엔드포인트마다 health_timeout_seconds 가 따로 적용되며, 시간 초과는 해당 엔드포인트만 실패로 봅니다.
        모든 엔드포인트가 성공해야 healthy.
        엔드포인트별 성공 여부는 컬렉션 이름(users / posts / comments)으로 보고하고,
        같은 컬렉션이 여러 번 설정되면 엔드포인트 경로 그대로 보고합니다.
        """
        start = time.perf_counter()

        async def _probe(endpoint: str) -> bool:
            try:
                await asyncio.wait_for(self._get(endpoint), timeout=self.health_timeout_seconds)
                return True
            except asyncio.TimeoutError:
                logger.warning(
                    f"헬스 체크 시간 초과: {endpoint}",
                    extra={"endpoint": endpoint, "timeout_seconds": self.health_timeout_seconds},
                )
                return False
            except SourceAPIError as e:
                logger.warning(f"헬스 체크 실패: {endpoint}", extra={"error_code": e.error_code})
                return False

        results = await asyncio.gather(*(_probe(ep) for ep in self.health_endpoints))

        endpoints = dict(zip(_health_report_keys(self.health_endpoints), results, strict=True))
        success_count = sum(1 for ok in results if ok)
        healthy = success_count == len(results)
        error: str | None = None
        if not healthy:
            failed = [name for name, ok in endpoints.items() if not ok]
            error = f"unreachable endpoints: {', '.join(failed)}"

        report = HealthReport(
            healthy=healthy,
            endpoints=endpoints,
            success_rate=round(success_count / len(results) * 100, 1) if results else 0.0,
            response_time_ms=int((time.perf_counter() - start) * 1000),
            error=error,
        )
        logger.info(
            "외부 API 헬스 체크 완료",
            extra={"healthy": report.healthy, "success_rate": report.success_rate, "endpoints": endpoints},
        )
        return report

    async def test_connection(self) -> dict[str, Any]:
        """/users/1 단건 조회로 연결 확인"""
        start = time.perf_counter()
        try:
            await self._get("/users/1")
        except SourceAPIError as e:
            logger.error("외부 API 연결 테스트 실패", extra={"error_code": e.error_code})
            return {
                "success": False,
                "error": str(e),
                "error_code": e.error_code,
                "base_url": self.base_url,
            }
        response_time_ms = int((time.perf_counter() - start) * 1000)
        logger.info("외부 API 연결 테스트 성공", extra={"response_time_ms": response_time_ms})
        return {"success": True, "response_time_ms": response_time_ms, "base_url": self.base_url}

    # ========================================================================
    # 배치 조회
    # ========================================================================

    async def fetch_with_retry(
        self,
        endpoint: str,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> BatchItemResult:
        """
        단건 조회 + 지수 백오프 재시도

        max_retries 는 총 시도 횟수. n 번째 실패 후 base_delay * 2^(n-1) 초 대기.
        재시도 불가 에러(404, 기타 4xx, 응답 형식 오류)는 즉시 종료.
        """
        max_attempts = max(1, max_retries if max_retries is not None else self.max_retries)
        delay_base = self.retry_base_delay_seconds if base_delay is None else base_delay

        last_error: SourceAPIError | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                value = await self.fetch_one(endpoint)
                return BatchItemResult(endpoint=endpoint, value=value, attempts=attempt)
            except SourceAPIError as e:
                last_error = e
                if not e.retryable or attempt == max_attempts:
                    return BatchItemResult(endpoint=endpoint, error=e, attempts=attempt)
                wait_time = delay_base * (2 ** (attempt - 1))
                logger.warning(
                    f"요청 재시도 대기 {wait_time:.2f}초 (시도 {attempt}/{max_attempts})",
                    extra={"endpoint": endpoint, "attempt": attempt, "delay": wait_time, "error_code": e.error_code},
                )
                await asyncio.sleep(wait_time)

        # max_attempts >= 1 이므로 도달하지 않음
        return BatchItemResult(endpoint=endpoint, error=last_error, attempts=max_attempts)

    async def batch_fetch(
        self,
        endpoints: Sequence[str],
        concurrency: int | None = None,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> list[BatchItemResult]:
        """
        동시성 제한 배치 조회

        endpoints 를 concurrency 크기 그룹으로 나누어, 그룹 내부는 동시에,
        그룹 간에는 순차로 실행합니다. 한 요청의 실패는 다른 요청에 영향을 주지 않으며
        결과는 입력 순서대로 반환됩니다.
        """
        group_size = max(1, concurrency or self.batch_concurrency)
        results: list[BatchItemResult] = []

        for i in range(0, len(endpoints), group_size):
            group = endpoints[i : i + group_size]
            group_results = await asyncio.gather(
                *(self.fetch_with_retry(ep, max_retries, base_delay) for ep in group)
            )
            results.extend(group_results)

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "배치 조회 완료",
            extra={"total": len(results), "succeeded": len(results) - failed, "failed": failed},
        )
        return results
