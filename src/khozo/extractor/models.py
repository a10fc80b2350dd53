"""
Data models for the extraction cascade.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class MethodName(str, Enum):
    """Extraction methods in trust order, most preferred first."""

    PLAYER_RESPONSE = "player_response"
    CAPTION_API = "caption_api"
    CAPTION_LIBRARY = "caption_library"
    TIMEDTEXT = "timedtext"
    WEB_SEARCH = "web_search"
    METADATA_SUMMARY = "metadata_summary"


# Fixed per-method trust, strictly decreasing down the order.
CONFIDENCE_BY_METHOD: Dict[MethodName, float] = {
    MethodName.PLAYER_RESPONSE: 1.0,
    MethodName.CAPTION_API: 0.95,
    MethodName.CAPTION_LIBRARY: 0.9,
    MethodName.TIMEDTEXT: 0.8,
    MethodName.WEB_SEARCH: 0.65,
    MethodName.METADATA_SUMMARY: 0.5,
}

TRUST_ORDER: Tuple[MethodName, ...] = tuple(MethodName)


class TargetKind(str, Enum):
    VIDEO = "video"
    ARTICLE = "article"


@dataclass(slots=True, frozen=True)
class ExtractionTarget:
    """Canonical identifier of the resource processed in one run."""

    identifier: str
    kind: TargetKind
    source_url: str
    language: str = "en"
    # Attached by the pipeline before the cascade starts.
    metadata: Optional[VideoMetadata] = field(default=None, compare=False)

    @property
    def is_video(self) -> bool:
        return self.kind is TargetKind.VIDEO

    @property
    def watch_url(self) -> str:
        if self.is_video:
            return f"https://www.youtube.com/watch?v={self.identifier}"
        return self.identifier


@dataclass(slots=True, frozen=True)
class OrganizationQuery:
    """Disambiguation signal for a bare organization name such as "SSC".

    Callers branch to a "list all opportunities for this organization" flow
    instead of single-resource extraction.
    """

    organization: str
    query: str


@dataclass(slots=True, frozen=True)
class TranscriptSegment:
    """One time-aligned caption unit."""

    start_offset_seconds: float
    text: str

    def __post_init__(self) -> None:
        if self.start_offset_seconds < 0:
            raise ValueError("start_offset_seconds must be non-negative")


@dataclass(slots=True, frozen=True)
class RawContent:
    """What an extraction method hands back before normalization."""

    text: str = ""
    segments: Tuple[TranscriptSegment, ...] = ()
    timestamped_text: Optional[str] = None
    language: Optional[str] = None

    @property
    def has_segments(self) -> bool:
        return bool(self.segments)


@dataclass(slots=True, frozen=True)
class ExtractionAttempt:
    """Outcome of invoking one method. Kept for diagnostics only."""

    method_name: MethodName
    succeeded: bool
    duration: float
    raw_output: Optional[RawContent] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    content_level: bool = False


@dataclass(slots=True, frozen=True)
class ChapterMarker:
    time: str
    title: str


@dataclass(slots=True, frozen=True)
class VideoMetadata:
    """Descriptive metadata used by the prose-only fallbacks."""

    video_id: str
    title: str
    description: str = ""
    channel_title: str = ""
    duration: str = ""
    tags: Tuple[str, ...] = ()
    default_language: Optional[str] = None
    chapters: Tuple[ChapterMarker, ...] = ()


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """Canonical output of a successful cascade run."""

    canonical_text: str
    timestamped_text: str
    segments: Tuple[TranscriptSegment, ...]
    method: MethodName
    confidence_score: float
    validated: bool
    attempts: Tuple[ExtractionAttempt, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        """Validate the result."""
        if not self.validated:
            raise ValueError("An unvalidated result must never leave the cascade")
        if not (0.0 < self.confidence_score <= 1.0):
            raise ValueError("confidence_score must be in (0, 1]")

    @property
    def word_count(self) -> int:
        return len(self.canonical_text.split())

    @property
    def estimated_read_minutes(self) -> int:
        return math.ceil(self.word_count / 200)

    @property
    def has_timestamps(self) -> bool:
        return bool(self.segments)

    def provenance(self) -> Dict[str, Any]:
        return {"extraction_method": self.method.value, "confidence_score": self.confidence_score}

    def to_dict(self) -> Dict[str, Any]:
        segments: List[Dict[str, Any]] = [
            {"start_offset_seconds": s.start_offset_seconds, "text": s.text} for s in self.segments
        ]
        return {
            **self.provenance(),
            "canonical_text": self.canonical_text,
            "timestamped_text": self.timestamped_text,
            "segments": segments,
            "validated": self.validated,
            "word_count": self.word_count,
            "estimated_read_minutes": self.estimated_read_minutes,
            "attempts": [
                {
                    "method": a.method_name.value,
                    "succeeded": a.succeeded,
                    "duration": round(a.duration, 4),
                    "error": a.error,
                }
                for a in self.attempts
            ],
        }
