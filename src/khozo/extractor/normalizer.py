"""
Content normalizer: converts whatever shape a method returned into the
canonical (text, timestamped text, segments) triple.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .models import RawContent, TranscriptSegment

_TIMESTAMP_LINE = re.compile(r"^\[(?:(\d+):)?(\d{1,2}):(\d{2})\]\s?(.*)$")


def format_timestamp(seconds: float) -> str:
    """Format seconds as H:MM:SS, or M:SS when the hour component is zero."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def clean_segments(segments: Iterable[TranscriptSegment]) -> Tuple[TranscriptSegment, ...]:
    """Strip text, drop empty entries and order by offset (stable)."""
    cleaned = [
        TranscriptSegment(start_offset_seconds=s.start_offset_seconds, text=" ".join(s.text.split()))
        for s in segments
    ]
    cleaned = [s for s in cleaned if s.text]
    return tuple(sorted(cleaned, key=lambda s: s.start_offset_seconds))


def render_timestamped(segments: Iterable[TranscriptSegment]) -> str:
    return "\n".join(f"[{format_timestamp(s.start_offset_seconds)}] {s.text}" for s in segments)


def split_segments(timestamped_text: str) -> List[TranscriptSegment]:
    """Parse rendered ``[M:SS] text`` lines back into segments.

    Offsets come back at whole-second precision.
    """
    segments: List[TranscriptSegment] = []
    for line in timestamped_text.splitlines():
        match = _TIMESTAMP_LINE.match(line.strip())
        if not match:
            continue
        hours, minutes, secs, text = match.groups()
        offset = int(hours or 0) * 3600 + int(minutes) * 60 + int(secs)
        segments.append(TranscriptSegment(start_offset_seconds=float(offset), text=text))
    return segments


def word_count(text: str) -> int:
    return len(text.split())


def estimated_read_minutes(text: str, words_per_minute: int = 200) -> int:
    return math.ceil(word_count(text) / words_per_minute)


@dataclass(slots=True, frozen=True)
class NormalizedContent:
    canonical_text: str
    timestamped_text: str
    segments: Tuple[TranscriptSegment, ...]


class ContentNormalizer:
    """Produces canonical text for both segment-bearing and prose-only content."""

    def normalize(self, raw: RawContent) -> NormalizedContent:
        segments = clean_segments(raw.segments)
        if segments:
            canonical = " ".join(s.text for s in segments)
            return NormalizedContent(
                canonical_text=canonical,
                timestamped_text=render_timestamped(segments),
                segments=segments,
            )

        # Prose-only content carries no timing.
        canonical = raw.text.strip()
        return NormalizedContent(canonical_text=canonical, timestamped_text=canonical, segments=())
