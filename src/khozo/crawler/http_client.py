"""
HTTP client with retry, backoff and observability.
"""

from __future__ import annotations

import asyncio
import json
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp
import structlog

from khozo.config.config import HttpConfig
from khozo.observability import metrics

logger = structlog.get_logger(__name__)

RETRYABLE_STATUSES = frozenset({429, 502, 503, 504})


@dataclass
class CrawlerResponse:
    """Response from an HTTP fetch with timing and attempt information."""

    status: int
    headers: Dict[str, str]
    body: bytes
    start_ts: float
    end_ts: float
    attempts: int
    url: str
    final_url: str
    error: Optional[str] = field(default=None)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def elapsed(self) -> float:
        return self.end_ts - self.start_ts

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text())

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class HttpClient:
    """Async HTTP client shared by the extraction methods of one container."""

    def __init__(self, config: HttpConfig) -> None:
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self._is_initialized = False

        logger.info(
            "HTTP client initialized",
            max_retries=self.config.max_retries,
            timeout=self.config.timeout,
        )

    async def initialize(self) -> None:
        """Initialize the HTTP client session."""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept-Language": self.config.accept_language,
                },
            )
            self._is_initialized = True
            logger.info("HTTP client session initialized")

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
        self._is_initialized = False
        logger.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _should_retry(self, status: int, attempt: int, max_retries: int) -> bool:
        """Determine if request should be retried."""
        if attempt > max_retries:
            return False
        return status in RETRYABLE_STATUSES

    def _calculate_backoff_delay(self, attempt: int, retry_after: Optional[str] = None) -> float:
        """Calculate exponential backoff delay with jitter, honouring Retry-After."""
        if retry_after:
            try:
                return min(max(0.0, float(retry_after)), self.config.max_retry_after)
            except ValueError:
                pass
        base_delay = self.config.backoff_base_seconds * 2 ** (attempt - 1)  # 1s, 2s, 4s
        jitter = random.uniform(0.8, 1.2)  # ±20% jitter
        return base_delay * jitter

    async def fetch(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> CrawlerResponse:
        """GET a URL, retrying 429/5xx and transport errors."""
        return await self.request("GET", url, params=params, headers=headers, timeout=timeout, max_retries=max_retries)

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> CrawlerResponse:
        """POST a JSON payload, with the same retry policy as ``fetch``."""
        return await self.request(
            "POST", url, json_body=payload, headers=headers, timeout=timeout, max_retries=max_retries
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json_body: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> CrawlerResponse:
        """
        Perform a request with retries and observability.

        Transport errors never raise: after the last attempt a response with
        status 0 and ``error`` set is returned, matching how a non-retryable
        HTTP error is returned as-is.
        """
        if not self._is_initialized or self.session is None:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")

        if max_retries is None:
            max_retries = self.config.max_retries
        timeout = timeout if timeout is not None else self.config.timeout

        start_time = time.time()
        attempt = 0
        last_error: Optional[str] = None

        while attempt < max_retries + 1:
            attempt += 1
            # Set when the next attempt should wait; the wait runs outside the request timeout.
            retry_delay: Optional[float] = None
            try:
                async with asyncio.timeout(timeout):
                    async with self.session.request(
                        method,
                        url,
                        params=dict(params) if params else None,
                        headers=dict(headers) if headers else None,
                        json=dict(json_body) if json_body is not None else None,
                    ) as response:
                        status = response.status
                        response_headers = dict(response.headers)
                        final_url = str(response.url)

                        if self._should_retry(status, attempt, max_retries):
                            retry_delay = self._calculate_backoff_delay(attempt, response_headers.get("Retry-After"))
                            logger.info(
                                "Retrying request",
                                url=url,
                                status=status,
                                attempt=attempt,
                                max_retries=max_retries,
                                delay=round(retry_delay, 3),
                            )
                        else:
                            content = await response.read()

                if retry_delay is None:
                    end_time = time.time()
                    metrics.increment("http_responses_total", labels={"status_class": f"{status // 100}xx"})
                    return CrawlerResponse(
                        status=status,
                        headers=response_headers,
                        body=content,
                        start_ts=start_time,
                        end_ts=end_time,
                        attempts=attempt,
                        url=url,
                        final_url=final_url,
                    )

            except asyncio.TimeoutError:
                last_error = f"Request timed out after {timeout}s"
                logger.warning("Request timed out", url=url, attempt=attempt, max_retries=max_retries)
            except aiohttp.ClientError as e:
                last_error = str(e) or type(e).__name__
                logger.warning("Request failed", url=url, attempt=attempt, max_retries=max_retries, error=last_error)

            if retry_delay is None:
                if attempt >= max_retries + 1:
                    break
                retry_delay = self._calculate_backoff_delay(attempt)
            await asyncio.sleep(retry_delay)

        metrics.increment("http_responses_total", labels={"status_class": "0xx"})
        return CrawlerResponse(
            status=0,
            headers={},
            body=b"",
            start_ts=start_time,
            end_ts=time.time(),
            attempts=attempt,
            url=url,
            final_url=url,
            error=last_error,
        )
