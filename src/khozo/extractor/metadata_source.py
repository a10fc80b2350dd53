"""
Video metadata from the YouTube Data API v3, with an oEmbed title fallback.

Metadata is optional enrichment: lookups that fail are logged and return
``None`` (or title-only metadata) instead of failing the run.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import structlog

from khozo.protocols import CredentialStore, Fetcher

from .models import ChapterMarker, VideoMetadata

logger = structlog.get_logger(__name__)

VIDEOS_API_URL = "https://www.googleapis.com/youtube/v3/videos"
OEMBED_URL = "https://www.youtube.com/oembed"
CREDENTIAL_NAME = "youtube_api_key"

# "0:00 Introduction" or "1:23:45 Chapter Name"
_CHAPTER_LINE = re.compile(r"^((?:\d{1,2}:)?\d{1,2}:\d{2})\s+(.+)$")


def parse_chapters(description: str) -> List[ChapterMarker]:
    chapters: List[ChapterMarker] = []
    for line in description.splitlines():
        match = _CHAPTER_LINE.match(line.strip())
        if match:
            chapters.append(ChapterMarker(time=match.group(1), title=match.group(2).strip()))
    return chapters


def metadata_from_item(video_id: str, item: Dict[str, Any]) -> VideoMetadata:
    snippet = item.get("snippet") or {}
    content_details = item.get("contentDetails") or {}
    description = snippet.get("description") or ""
    return VideoMetadata(
        video_id=video_id,
        title=snippet.get("title") or "",
        description=description,
        channel_title=snippet.get("channelTitle") or "",
        duration=content_details.get("duration") or "",
        tags=tuple(snippet.get("tags") or ()),
        default_language=snippet.get("defaultAudioLanguage") or snippet.get("defaultLanguage"),
        chapters=tuple(parse_chapters(description)),
    )


class YouTubeMetadataSource:
    """Implements ``MetadataSource`` over the shared fetcher."""

    def __init__(self, fetcher: Fetcher, credentials: CredentialStore) -> None:
        self.fetcher = fetcher
        self.credentials = credentials
        self.logger = logger.bind(component="YouTubeMetadataSource")

    async def get_metadata(self, video_id: str) -> Optional[VideoMetadata]:
        metadata = await self._from_data_api(video_id)
        if metadata is not None:
            return metadata
        return await self._from_oembed(video_id)

    async def _from_data_api(self, video_id: str) -> Optional[VideoMetadata]:
        api_key = self.credentials.get(CREDENTIAL_NAME)
        if not api_key:
            self.logger.info("YouTube API key not set, skipping metadata fetch", video_id=video_id)
            return None

        response = await self.fetcher.fetch(
            VIDEOS_API_URL,
            params={"part": "snippet,contentDetails", "id": video_id, "key": api_key},
        )
        if not response.ok:
            self.logger.warning(
                "YouTube metadata fetch failed", video_id=video_id, status=response.status, error=response.error
            )
            return None

        try:
            data = response.json()
        except ValueError as e:
            self.logger.warning("YouTube metadata response is not JSON", video_id=video_id, error=str(e))
            return None

        if not isinstance(data, dict):
            self.logger.warning("YouTube metadata response is not an object", video_id=video_id)
            return None

        items = data.get("items") or []
        if not items:
            self.logger.warning("Video not found in YouTube Data API", video_id=video_id)
            return None

        metadata = metadata_from_item(video_id, items[0])
        self.logger.info(
            "Fetched video metadata",
            video_id=video_id,
            title=metadata.title,
            description_length=len(metadata.description),
            chapters=len(metadata.chapters),
        )
        return metadata

    async def _from_oembed(self, video_id: str) -> Optional[VideoMetadata]:
        response = await self.fetcher.fetch(
            OEMBED_URL,
            params={"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"},
        )
        if not response.ok:
            self.logger.info("oEmbed lookup failed", video_id=video_id, status=response.status)
            return None
        try:
            data = response.json()
        except ValueError:
            return None
        title = data.get("title") if isinstance(data, dict) else None
        if not title:
            return None
        return VideoMetadata(video_id=video_id, title=title, channel_title=data.get("author_name") or "")
