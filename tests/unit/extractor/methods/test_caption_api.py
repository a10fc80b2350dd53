"""
Unit tests for the keyed caption API method.
"""

import json
import re

import pytest
from aioresponses import aioresponses

from khozo.config.credentials import StaticCredentialStore
from khozo.exceptions import CaptionsUnavailable, MethodFailure, MissingCredential, RateLimited
from khozo.extractor.methods.caption_api import DEFAULT_API_URL, CaptionApiMethod

API_URL = re.compile(r"^" + re.escape(DEFAULT_API_URL) + r"\?.*")


@pytest.mark.unit
class TestCaptionApiMethod:
    @pytest.mark.asyncio
    async def test_offsets_are_converted_from_milliseconds(self, http_client, credentials, video_target):
        body = {
            "lang": "en",
            "content": [
                {"text": "Welcome", "offset": 0, "duration": 1500},
                {"text": "  ", "offset": 1500, "duration": 100},
                {"text": "Article 14", "offset": 65000, "duration": 2000},
            ],
        }
        with aioresponses() as m:
            m.get(API_URL, status=200, body=json.dumps(body))

            raw = await CaptionApiMethod(http_client, credentials).attempt(video_target)

            request = next(iter(m.requests.values()))[0]
            assert request.kwargs["headers"]["x-api-key"] == "test-caption-key"

        assert [(s.start_offset_seconds, s.text) for s in raw.segments] == [(0.0, "Welcome"), (65.0, "Article 14")]

    @pytest.mark.asyncio
    async def test_missing_key_fails_without_network(self, http_client, video_target):
        method = CaptionApiMethod(http_client, StaticCredentialStore())
        with aioresponses() as m:
            with pytest.raises(MissingCredential):
                await method.attempt(video_target)
            assert not m.requests

    @pytest.mark.asyncio
    async def test_rate_limit_carries_retry_after_and_is_not_retried(self, http_client, credentials, video_target):
        with aioresponses() as m:
            m.get(API_URL, status=429, headers={"Retry-After": "42"}, repeat=True)

            with pytest.raises(RateLimited) as exc_info:
                await CaptionApiMethod(http_client, credentials).attempt(video_target)

            assert sum(len(calls) for calls in m.requests.values()) == 1

        assert exc_info.value.retry_after == 42.0
        assert not exc_info.value.content_level

    @pytest.mark.asyncio
    async def test_rate_limit_without_header(self, http_client, credentials, video_target):
        with aioresponses() as m:
            m.get(API_URL, status=429)

            with pytest.raises(RateLimited) as exc_info:
                await CaptionApiMethod(http_client, credentials).attempt(video_target)

        assert exc_info.value.retry_after is None

    @pytest.mark.asyncio
    async def test_other_errors(self, http_client, credentials, video_target):
        with aioresponses() as m:
            m.get(API_URL, status=500)

            with pytest.raises(MethodFailure, match="HTTP 500"):
                await CaptionApiMethod(http_client, credentials).attempt(video_target)

    @pytest.mark.asyncio
    async def test_no_segments(self, http_client, credentials, video_target):
        with aioresponses() as m:
            m.get(API_URL, status=200, body=json.dumps({"content": []}))

            with pytest.raises(CaptionsUnavailable):
                await CaptionApiMethod(http_client, credentials).attempt(video_target)

    @pytest.mark.asyncio
    async def test_plain_text_content(self, http_client, credentials, video_target):
        with aioresponses() as m:
            m.get(API_URL, status=200, body=json.dumps({"content": "Full transcript text", "lang": "hi"}))

            raw = await CaptionApiMethod(http_client, credentials).attempt(video_target)

        assert raw.text == "Full transcript text"
        assert not raw.has_segments
