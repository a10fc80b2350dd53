"""
Method 2: third-party transcript API keyed by video id.
"""

from __future__ import annotations

from typing import Any, List, Optional

import structlog

from khozo.exceptions import CaptionsUnavailable, MethodFailure, MissingCredential, RateLimited
from khozo.protocols import CredentialStore, Fetcher

from ..models import ExtractionTarget, MethodName, RawContent, TranscriptSegment
from .common import require_video, response_error

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.supadata.ai/v1/youtube/transcript"
CREDENTIAL_NAME = "caption_api_key"


def _retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def parse_provider_segments(entries: List[Any]) -> List[TranscriptSegment]:
    """Provider offsets are milliseconds."""
    segments: List[TranscriptSegment] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        text = str(entry.get("text") or "").strip()
        if not text:
            continue
        offset_ms = max(0.0, float(entry.get("offset") or 0))
        segments.append(TranscriptSegment(start_offset_seconds=offset_ms / 1000.0, text=text))
    return segments


class CaptionApiMethod:
    """Transcript provider that needs an API key; never retried client-side."""

    name = MethodName.CAPTION_API

    def __init__(self, fetcher: Fetcher, credentials: CredentialStore, api_url: str = DEFAULT_API_URL) -> None:
        self.fetcher = fetcher
        self.credentials = credentials
        self.api_url = api_url
        self.logger = logger.bind(component="CaptionApiMethod")

    async def attempt(self, target: ExtractionTarget) -> RawContent:
        video_id = require_video(target, self.name)

        api_key = self.credentials.get(CREDENTIAL_NAME)
        if not api_key:
            raise MissingCredential(CREDENTIAL_NAME)

        response = await self.fetcher.fetch(
            self.api_url,
            params={"videoId": video_id, "lang": target.language, "text": "false"},
            headers={"x-api-key": api_key},
            max_retries=0,
        )

        if response.status == 429:
            retry_after = _retry_after(response.header("Retry-After"))
            self.logger.warning("Caption API rate limited", video_id=video_id, retry_after=retry_after)
            raise RateLimited("caption API rate limited", retry_after=retry_after)
        if not response.ok:
            raise MethodFailure(f"caption API request failed: {response_error(response)}")

        try:
            data = response.json()
        except ValueError as e:
            raise MethodFailure(f"caption API returned invalid JSON: {e}") from e

        content = data.get("content") if isinstance(data, dict) else None
        if isinstance(content, str):
            # Plain-text mode: no timing information.
            if not content.strip():
                raise CaptionsUnavailable("caption API returned no content")
            return RawContent(text=content, language=data.get("lang"))

        segments = parse_provider_segments(content or [])
        if not segments:
            raise CaptionsUnavailable("caption API returned no segments")
        return RawContent(segments=tuple(segments), language=data.get("lang"))
