"""
The six extraction strategies, in trust order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional

from ..models import MethodName
from ..protocols import ExtractionMethod
from .caption_api import CaptionApiMethod
from .caption_library import CaptionLibraryMethod, TranscriptFetch
from .metadata_summary import MetadataSummaryMethod
from .player_response import PlayerResponseMethod
from .timedtext import TimedTextMethod
from .web_search import WebSearchMethod

if TYPE_CHECKING:
    from khozo.config.config import ExtractionSettings
    from khozo.protocols import CredentialStore, Fetcher, LanguageModel


def build_methods(
    settings: "ExtractionSettings",
    *,
    fetcher: "Fetcher",
    llm: "LanguageModel",
    credentials: "CredentialStore",
    transcript_fetch: Optional[TranscriptFetch] = None,
) -> List[ExtractionMethod]:
    """Instantiate the configured methods in ``settings.method_order``."""
    available: Dict[MethodName, ExtractionMethod] = {
        MethodName.PLAYER_RESPONSE: PlayerResponseMethod(fetcher),
        MethodName.CAPTION_API: CaptionApiMethod(fetcher, credentials, api_url=settings.caption_api_url),
        MethodName.CAPTION_LIBRARY: CaptionLibraryMethod(transcript_fetch, offset_unit=settings.library_offset_unit),
        MethodName.TIMEDTEXT: TimedTextMethod(fetcher),
        MethodName.WEB_SEARCH: WebSearchMethod(llm, min_chars=settings.web_search_min_chars),
        MethodName.METADATA_SUMMARY: MetadataSummaryMethod(
            llm,
            min_description_chars=settings.metadata_min_description_chars,
            min_output_chars=settings.metadata_min_output_chars,
        ),
    }
    return [available[name] for name in settings.method_order]


__all__ = [
    "CaptionApiMethod",
    "CaptionLibraryMethod",
    "MetadataSummaryMethod",
    "PlayerResponseMethod",
    "TimedTextMethod",
    "WebSearchMethod",
    "build_methods",
]
