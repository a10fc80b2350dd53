"""
Method 3: the youtube-transcript-api library, run in a worker thread.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import structlog
from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    TranscriptsDisabled,
    YouTubeTranscriptApi,
)

from khozo.exceptions import CaptionsUnavailable, MethodFailure

from ..models import ExtractionTarget, MethodName, RawContent, TranscriptSegment
from .common import require_video

logger = structlog.get_logger(__name__)

TranscriptFetch = Callable[[str, Sequence[str]], Iterable[Dict[str, Any]]]

_UNIT_SCALE = {"s": 1.0, "ms": 0.001}


def fetch_with_library(video_id: str, languages: Sequence[str]) -> List[Dict[str, Any]]:
    """Blocking call into youtube-transcript-api."""
    return YouTubeTranscriptApi().fetch(video_id, languages=list(languages)).to_raw_data()


def library_languages(requested: str) -> List[str]:
    languages: List[str] = []
    for code in (requested, "en", "hi"):
        if code and code not in languages:
            languages.append(code)
    return languages


class CaptionLibraryMethod:
    """Wraps a blocking transcript library behind the async method contract."""

    name = MethodName.CAPTION_LIBRARY

    def __init__(self, fetch: Optional[TranscriptFetch] = None, *, offset_unit: str = "s") -> None:
        if offset_unit not in _UNIT_SCALE:
            raise ValueError(f"offset_unit must be one of {sorted(_UNIT_SCALE)}")
        self.fetch = fetch or fetch_with_library
        self.offset_unit = offset_unit
        self.logger = logger.bind(component="CaptionLibraryMethod")

    def to_segments(self, entries: Iterable[Dict[str, Any]]) -> List[TranscriptSegment]:
        scale = _UNIT_SCALE[self.offset_unit]
        segments: List[TranscriptSegment] = []
        for entry in entries:
            text = str(entry.get("text") or "").replace("\n", " ").strip()
            if not text:
                continue
            raw_offset = entry.get("offset", entry.get("start")) or 0
            segments.append(TranscriptSegment(start_offset_seconds=max(0.0, float(raw_offset) * scale), text=text))
        return segments

    async def attempt(self, target: ExtractionTarget) -> RawContent:
        video_id = require_video(target, self.name)
        languages = library_languages(target.language)

        loop = asyncio.get_running_loop()
        try:
            entries = await loop.run_in_executor(None, self.fetch, video_id, languages)
        except (NoTranscriptFound, TranscriptsDisabled) as e:
            raise CaptionsUnavailable(f"caption library found no transcript: {type(e).__name__}") from e
        except CouldNotRetrieveTranscript as e:
            raise MethodFailure(f"caption library failed: {type(e).__name__}") from e

        segments = self.to_segments(entries or [])
        if not segments:
            raise CaptionsUnavailable("caption library returned no entries")

        self.logger.debug("Caption library returned segments", video_id=video_id, count=len(segments))
        return RawContent(segments=tuple(segments))
