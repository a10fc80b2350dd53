"""
Shared fixtures for the khozo test suite.

Network access is always mocked: HTTP with aioresponses, language-model calls
with ``AsyncMock`` fakes.
"""

import asyncio
from typing import AsyncGenerator, Callable, Optional
from unittest.mock import patch

import pytest
import pytest_asyncio

from khozo.config.config import ExtractionSettings, HttpConfig, LLMConfig
from khozo.config.credentials import StaticCredentialStore
from khozo.crawler.http_client import HttpClient
from khozo.extractor.models import (
    ChapterMarker,
    ExtractionTarget,
    TargetKind,
    VideoMetadata,
)

VIDEO_ID = "dQw4w9WgXcQ"

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


@pytest_asyncio.fixture(autouse=True)
async def cleanup_tasks() -> AsyncGenerator[None, None]:
    """Cancel tasks a test leaves behind so one test cannot hang the next."""
    tasks_before = asyncio.all_tasks()
    yield
    current = asyncio.current_task()
    leftover = [t for t in asyncio.all_tasks() - tasks_before if t is not current and not t.done()]
    for task in leftover:
        task.cancel()
    if leftover:
        await asyncio.gather(*leftover, return_exceptions=True)


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def http_config() -> HttpConfig:
    return HttpConfig(timeout=5.0, max_retries=2, backoff_base_seconds=0.01)


@pytest_asyncio.fixture
async def http_client(http_config) -> AsyncGenerator[HttpClient, None]:
    client = HttpClient(http_config)
    await client.initialize()
    yield client
    await client.close()


@pytest.fixture
def deterministic_jitter():
    """Remove randomness from backoff delays."""
    with patch("khozo.crawler.http_client.random.uniform", return_value=1.0):
        yield


# ============================================================================
# Domain objects
# ============================================================================


@pytest.fixture
def video_target() -> ExtractionTarget:
    return ExtractionTarget(
        identifier=VIDEO_ID,
        kind=TargetKind.VIDEO,
        source_url=f"https://www.youtube.com/watch?v={VIDEO_ID}",
        language="en",
    )


@pytest.fixture
def article_target() -> ExtractionTarget:
    return ExtractionTarget(
        identifier="https://ssc.gov.in/notice/cgl-2024",
        kind=TargetKind.ARTICLE,
        source_url="https://ssc.gov.in/notice/cgl-2024",
    )


@pytest.fixture
def make_metadata() -> Callable[..., VideoMetadata]:
    def _make(description_chars: int = 600, default_language: Optional[str] = None) -> VideoMetadata:
        description = ("Polity lecture covering fundamental rights and duties. " * 20)[:description_chars]
        return VideoMetadata(
            video_id=VIDEO_ID,
            title="Indian Polity for SSC CGL",
            description=description,
            channel_title="Exam Prep Channel",
            duration="PT45M",
            tags=("polity", "ssc"),
            default_language=default_language,
            chapters=(ChapterMarker(time="0:00", title="Introduction"),),
        )

    return _make


@pytest.fixture
def credentials() -> StaticCredentialStore:
    return StaticCredentialStore(
        {
            "anthropic_api_key": "test-anthropic-key",
            "caption_api_key": "test-caption-key",
            "youtube_api_key": "test-youtube-key",
        }
    )


@pytest.fixture
def extraction_settings() -> ExtractionSettings:
    return ExtractionSettings()


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig()
