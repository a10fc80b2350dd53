"""
Method 4: the legacy ``/api/timedtext`` endpoint, walked across languages.
"""

from __future__ import annotations

from typing import Dict, List

import structlog

from khozo.exceptions import CaptionsUnavailable
from khozo.protocols import Fetcher

from ..captions import parse_json3
from ..models import ExtractionTarget, MethodName, RawContent
from .common import require_video, response_error

logger = structlog.get_logger(__name__)

TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"
AUTO = "auto"


def timedtext_languages(target: ExtractionTarget) -> List[str]:
    """Source language, English, requested code, then the ASR track; de-duplicated."""
    source = target.language
    if target.metadata is not None and target.metadata.default_language:
        source = target.metadata.default_language

    languages: List[str] = []
    for code in (source, "en", target.language, AUTO):
        if code and code not in languages:
            languages.append(code)
    return languages


class TimedTextMethod:
    """Tries each language code in turn; only fails once every code has failed."""

    name = MethodName.TIMEDTEXT

    def __init__(self, fetcher: Fetcher, url: str = TIMEDTEXT_URL) -> None:
        self.fetcher = fetcher
        self.url = url
        self.logger = logger.bind(component="TimedTextMethod")

    def _params(self, video_id: str, code: str, source: str) -> Dict[str, str]:
        if code == AUTO:
            return {"v": video_id, "lang": source, "kind": "asr", "fmt": "json3"}
        return {"v": video_id, "lang": code, "fmt": "json3"}

    async def attempt(self, target: ExtractionTarget) -> RawContent:
        video_id = require_video(target, self.name)
        languages = timedtext_languages(target)

        for code in languages:
            response = await self.fetcher.fetch(self.url, params=self._params(video_id, code, languages[0]))
            if not response.ok:
                self.logger.debug("Timedtext request failed", language=code, error=response_error(response))
                continue

            body = response.text().strip()
            if not body:
                self.logger.debug("Timedtext body empty", language=code)
                continue

            try:
                data = response.json()
            except ValueError:
                self.logger.debug("Timedtext body is not JSON", language=code)
                continue

            segments = parse_json3(data) if isinstance(data, dict) else []
            if not segments:
                self.logger.debug("Timedtext returned no segments", language=code)
                continue

            self.logger.info("Timedtext captions found", video_id=video_id, language=code, count=len(segments))
            return RawContent(segments=tuple(segments), language=code)

        raise CaptionsUnavailable(f"no timedtext captions for languages {', '.join(languages)}")
