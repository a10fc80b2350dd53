"""
Parsers for YouTube caption payloads.

Two wire formats are understood: ``json3`` (``events[].tStartMs`` with
``segs[].utf8``) and the XML formats (``<text start="1.2">`` in seconds, or
srv3 ``<p t="1200">`` in milliseconds).
"""

from __future__ import annotations

import html
import json
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional, Sequence

from .models import TranscriptSegment


def parse_json3(data: Dict[str, Any]) -> List[TranscriptSegment]:
    segments: List[TranscriptSegment] = []
    for event in data.get("events") or []:
        segs = event.get("segs")
        if not segs:
            continue
        text = "".join(seg.get("utf8", "") for seg in segs).replace("\n", " ").strip()
        if not text:
            continue
        start_ms = max(0.0, float(event.get("tStartMs") or 0))
        segments.append(TranscriptSegment(start_offset_seconds=start_ms / 1000.0, text=text))
    return segments


def parse_xml(payload: str) -> List[TranscriptSegment]:
    try:
        root = ET.fromstring(payload)
    except ET.ParseError:
        return []

    segments: List[TranscriptSegment] = []
    for element in root.iter():
        if element.tag == "text" and "start" in element.attrib:
            offset = float(element.attrib["start"])
        elif element.tag == "p" and "t" in element.attrib:
            offset = float(element.attrib["t"]) / 1000.0
        else:
            continue
        text = html.unescape("".join(element.itertext())).replace("\n", " ").strip()
        if text:
            segments.append(TranscriptSegment(start_offset_seconds=max(0.0, offset), text=text))
    return segments


def parse_caption_payload(payload: str) -> List[TranscriptSegment]:
    """Parse a caption body in either format. Unknown shapes yield no segments."""
    body = payload.strip()
    if not body:
        return []
    if body.startswith("{"):
        try:
            return parse_json3(json.loads(body))
        except ValueError:
            return []
    if body.startswith("<"):
        return parse_xml(body)
    return []


def select_track(tracks: Sequence[Dict[str, Any]], language: str) -> Optional[Dict[str, Any]]:
    """Pick the requested language, then any English track, then the first track."""
    if not tracks:
        return None
    for track in tracks:
        if track.get("languageCode") == language:
            return track
    for track in tracks:
        code = str(track.get("languageCode") or "")
        if code == "en" or code.startswith("en-"):
            return track
    return tracks[0]


def with_format(base_url: str, fmt: str = "json3") -> str:
    if "fmt=" in base_url:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}fmt={fmt}"
