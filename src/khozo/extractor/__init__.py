"""
Multi-strategy content extraction.

Six methods are tried in trust order by the ``EscalationController``:
the player response embedded in the watch page, a keyed transcript API,
the youtube-transcript-api library, the legacy timedtext endpoint, a
web-search-backed language model and, as a last resort, study notes
generated from video metadata. The first candidate that passes validation
is normalized into an ``ExtractionResult`` carrying a fixed confidence score
for the method that produced it.
"""

from .controller import EscalationController
from .metadata_source import YouTubeMetadataSource
from .methods import build_methods
from .models import (
    CONFIDENCE_BY_METHOD,
    TRUST_ORDER,
    ExtractionAttempt,
    ExtractionResult,
    ExtractionTarget,
    MethodName,
    OrganizationQuery,
    RawContent,
    TargetKind,
    TranscriptSegment,
    VideoMetadata,
)
from .normalizer import ContentNormalizer, split_segments
from .protocols import ExtractionMethod
from .validator import ContentValidator, ValidationOutcome

__all__ = [
    "CONFIDENCE_BY_METHOD",
    "TRUST_ORDER",
    "ContentNormalizer",
    "ContentValidator",
    "EscalationController",
    "ExtractionAttempt",
    "ExtractionMethod",
    "ExtractionResult",
    "ExtractionTarget",
    "MethodName",
    "OrganizationQuery",
    "RawContent",
    "TargetKind",
    "TranscriptSegment",
    "ValidationOutcome",
    "VideoMetadata",
    "YouTubeMetadataSource",
    "build_methods",
    "split_segments",
]
