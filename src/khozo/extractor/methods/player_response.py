"""
Method 1: caption tracks from the player response embedded in the watch page.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog

from khozo.exceptions import CaptionsUnavailable, MethodFailure
from khozo.protocols import Fetcher

from ..captions import parse_caption_payload, select_track, with_format
from ..models import ExtractionTarget, MethodName, RawContent
from .common import require_video, response_error

logger = structlog.get_logger(__name__)

_PLAYER_RESPONSE_MARKER = re.compile(r"ytInitialPlayerResponse\s*=\s*")
_CAPTION_TRACKS_MARKER = '"captionTracks":'

_decoder = json.JSONDecoder()

Track = Dict[str, Any]


def find_player_response(page: str) -> Optional[Dict[str, Any]]:
    """Decode the ``ytInitialPlayerResponse = {...};`` assignment, if present."""
    for match in _PLAYER_RESPONSE_MARKER.finditer(page):
        try:
            value, _ = _decoder.raw_decode(page, match.end())
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


def _tracks_at(node: Any, *path: str) -> List[Track]:
    for key in path:
        if not isinstance(node, dict):
            return []
        node = node.get(key)
    if isinstance(node, list):
        return [t for t in node if isinstance(t, dict) and t.get("baseUrl")]
    return []


def probe_primary(player: Optional[Dict[str, Any]], page: str) -> List[Track]:
    return _tracks_at(player, "captions", "playerCaptionsTracklistRenderer", "captionTracks")


def probe_nested(player: Optional[Dict[str, Any]], page: str) -> List[Track]:
    return _tracks_at(player, "playerResponse", "captions", "playerCaptionsTracklistRenderer", "captionTracks")


def probe_brute_force(player: Optional[Dict[str, Any]], page: str) -> List[Track]:
    """Scan the raw page for any ``"captionTracks":[...]`` array."""
    start = 0
    while True:
        index = page.find(_CAPTION_TRACKS_MARKER, start)
        if index < 0:
            return []
        start = index + len(_CAPTION_TRACKS_MARKER)
        try:
            value, _ = _decoder.raw_decode(page, start)
        except ValueError:
            continue
        tracks = _tracks_at({"t": value}, "t")
        if tracks:
            return tracks


# Independent probes, tried in order; the first non-empty one wins.
TRACK_PROBES: Sequence[Callable[[Optional[Dict[str, Any]], str], List[Track]]] = (
    probe_primary,
    probe_nested,
    probe_brute_force,
)


class PlayerResponseMethod:
    """Reads caption tracks straight from the watch page."""

    name = MethodName.PLAYER_RESPONSE

    def __init__(self, fetcher: Fetcher) -> None:
        self.fetcher = fetcher
        self.logger = logger.bind(component="PlayerResponseMethod")

    async def attempt(self, target: ExtractionTarget) -> RawContent:
        video_id = require_video(target, self.name)

        page_response = await self.fetcher.fetch(target.watch_url, params={"hl": target.language})
        if not page_response.ok:
            raise MethodFailure(f"watch page fetch failed: {response_error(page_response)}")
        page = page_response.text()

        player = find_player_response(page)
        tracks: List[Track] = []
        for probe in TRACK_PROBES:
            tracks = probe(player, page)
            if tracks:
                self.logger.debug("Caption tracks found", video_id=video_id, probe=probe.__name__, count=len(tracks))
                break

        if not tracks:
            if player is None:
                raise MethodFailure("player response not found")
            raise CaptionsUnavailable("no caption tracks")

        track = select_track(tracks, target.language) or tracks[0]
        caption_response = await self.fetcher.fetch(with_format(track["baseUrl"]))
        if not caption_response.ok:
            raise MethodFailure(f"caption fetch failed: {response_error(caption_response)}")

        payload = caption_response.text()
        if not payload.strip():
            raise CaptionsUnavailable("caption payload empty")

        segments = parse_caption_payload(payload)
        if not segments:
            raise CaptionsUnavailable("no parseable segments")

        return RawContent(segments=tuple(segments), language=track.get("languageCode"))
