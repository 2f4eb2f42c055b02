import asyncio
import logging
import random
import time
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass

import httpx
from shared.observability.telemetry import CORRELATION_ID_HEADER

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_BACKOFF_FACTOR = 0.5
RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass
class RequestMetrics:
    attempts: int
    latency_ms: float


class SheetHttpClient:
    """
    Async httpx helper for downloading published sheet exports.

    Issues plain GETs (redirects followed, since published-sheet urls bounce
    through googleusercontent), tags each request with the correlation header
    and logs one structured record per outcome. A single attempt is made unless
    `max_attempts` is raised; non-2xx responses surface as httpx.HTTPStatusError.
    """

    def __init__(
        self,
        *,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = 1,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        correlation_header: str = CORRELATION_ID_HEADER,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._max_attempts = max(1, max_attempts)
        self._backoff_factor = max(0.0, backoff_factor)
        self._correlation_header = correlation_header
        self._transport = transport

    async def get_bytes(
        self,
        url: str,
        *,
        request_id: str,
        headers: Mapping[str, str] | None = None,
    ) -> tuple[bytes, RequestMetrics]:
        attempts = 0
        start_time = time.perf_counter()

        while True:
            attempts += 1
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout,
                    transport=self._transport,
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url, headers=self._build_headers(headers, request_id))
                response.raise_for_status()
            except (httpx.HTTPStatusError, httpx.RequestError) as exc:
                metrics = self._metrics(start_time, attempts)
                if attempts < self._max_attempts and self._should_retry(exc):
                    self._log("retry", logging.WARNING, url, request_id, metrics, error=str(exc))
                    await asyncio.sleep(self._backoff_seconds(attempts))
                    continue
                self._log("failure", logging.ERROR, url, request_id, metrics, error=str(exc))
                raise

            metrics = self._metrics(start_time, attempts)
            self._log(
                "success",
                logging.INFO,
                url,
                request_id,
                metrics,
                status_code=response.status_code,
                bytes=len(response.content),
            )
            return response.content, metrics

    def _build_headers(self, headers: Mapping[str, str] | None, request_id: str) -> MutableMapping[str, str]:
        merged: MutableMapping[str, str] = dict(headers or {})
        merged.setdefault(self._correlation_header, request_id)
        return merged

    def _metrics(self, start_time: float, attempts: int) -> RequestMetrics:
        latency_ms = (time.perf_counter() - start_time) * 1000
        return RequestMetrics(attempts=attempts, latency_ms=round(latency_ms, 2))

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, httpx.HTTPStatusError):
            return exc.response.status_code in RETRYABLE_STATUS_CODES
        return isinstance(exc, httpx.RequestError)

    def _backoff_seconds(self, attempts: int) -> float:
        base = self._backoff_factor * (2 ** (attempts - 1))
        return base + random.uniform(0, base / 2) if base else 0.0

    def _log(
        self,
        outcome: str,
        level: int,
        url: str,
        request_id: str,
        metrics: RequestMetrics,
        **extra: object,
    ) -> None:
        logger.log(
            level,
            {
                "event": "sheet_fetch",
                "outcome": outcome,
                "url": url,
                "request_id": request_id,
                "attempts": metrics.attempts,
                "latency_ms": metrics.latency_ms,
                **extra,
            },
        )
