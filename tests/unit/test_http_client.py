"""
Tests for HTTP client retry behavior.

These tests focus on externally observable behavior: status codes, attempt
counts and the shape of the returned ``CrawlerResponse``.
"""

import time
from unittest.mock import patch

import aiohttp
import pytest
from aioresponses import aioresponses

from khozo.config.config import HttpConfig
from khozo.crawler.http_client import HttpClient

URL = "https://example.com/page"


@pytest.mark.unit
class TestHttpClientRetryBehavior:
    @pytest.mark.asyncio
    async def test_retry_on_503_then_success(self, http_client, deterministic_jitter):
        with aioresponses() as m:
            m.get(URL, status=503, body="")
            m.get(URL, status=200, body="Success!")

            response = await http_client.fetch(URL)

        assert response.status == 200
        assert response.body == b"Success!"
        assert response.attempts == 2

    @pytest.mark.asyncio
    async def test_max_retries_exhausted_returns_last_response(self, http_client, deterministic_jitter):
        with aioresponses() as m:
            m.get(URL, status=503, repeat=True)

            response = await http_client.fetch(URL)

        assert response.status == 503
        assert response.attempts == 3  # 1 initial + 2 retries

    @pytest.mark.asyncio
    async def test_no_retry_on_404(self, http_client):
        with aioresponses() as m:
            m.get(URL, status=404, body="Not Found")

            response = await http_client.fetch(URL)

        assert response.status == 404
        assert response.attempts == 1
        assert not response.ok

    @pytest.mark.asyncio
    async def test_max_retries_zero_surfaces_429(self, http_client):
        with aioresponses() as m:
            m.get(URL, status=429, headers={"Retry-After": "30"}, repeat=True)

            response = await http_client.fetch(URL, max_retries=0)

        assert response.status == 429
        assert response.attempts == 1
        assert response.header("retry-after") == "30"

    @pytest.mark.asyncio
    async def test_transport_errors_return_status_zero(self, http_client, deterministic_jitter):
        with aioresponses() as m:
            m.get(URL, exception=aiohttp.ClientConnectionError("connection refused"), repeat=True)

            response = await http_client.fetch(URL)

        assert response.status == 0
        assert response.error == "connection refused"
        assert response.attempts == 3
        assert response.body == b""

    @pytest.mark.asyncio
    async def test_post_json(self, http_client):
        with aioresponses() as m:
            m.post(URL, status=200, body='{"ok": true}')

            response = await http_client.post_json(URL, {"q": 1}, headers={"x-api-key": "k"})

            call = next(iter(m.requests.values()))[0]
            assert call.kwargs["json"] == {"q": 1}

        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_retry_after_longer_than_timeout_is_honoured(self):
        client = HttpClient(HttpConfig(timeout=0.2, max_retries=1, backoff_base_seconds=0.01))
        await client.initialize()
        try:
            with aioresponses() as m:
                m.get(URL, status=429, headers={"Retry-After": "0.5"})
                m.get(URL, status=200, body="ok")

                started = time.monotonic()
                response = await client.fetch(URL)
                waited = time.monotonic() - started
        finally:
            await client.close()

        assert response.status == 200
        assert response.attempts == 2
        assert response.error is None
        assert waited >= 0.5

    @pytest.mark.asyncio
    async def test_requires_initialization(self, http_config):
        client = HttpClient(http_config)
        with pytest.raises(RuntimeError, match="not initialized"):
            await client.fetch(URL)


@pytest.mark.unit
class TestBackoff:
    def test_exponential_with_jitter_bounds(self):
        client = HttpClient(HttpConfig(backoff_base_seconds=1.0))
        for attempt, base in [(1, 1.0), (2, 2.0), (3, 4.0)]:
            delay = client._calculate_backoff_delay(attempt)
            assert base * 0.8 <= delay <= base * 1.2

    def test_retry_after_header_wins(self):
        client = HttpClient(HttpConfig())
        assert client._calculate_backoff_delay(1, "7") == 7.0

    def test_retry_after_is_capped(self):
        client = HttpClient(HttpConfig(max_retry_after=2.0))
        assert client._calculate_backoff_delay(1, "3600") == 2.0

    def test_unparseable_retry_after_is_ignored(self):
        client = HttpClient(HttpConfig(backoff_base_seconds=1.0))
        with patch("khozo.crawler.http_client.random.uniform", return_value=1.0):
            assert client._calculate_backoff_delay(2, "Wed, 21 Oct 2015 07:28:00 GMT") == 2.0
