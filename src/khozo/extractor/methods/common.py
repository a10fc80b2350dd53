"""Helpers shared by the extraction methods."""

from __future__ import annotations

from khozo.exceptions import MethodFailure

from ..models import ExtractionTarget, MethodName


def require_video(target: ExtractionTarget, method: MethodName) -> str:
    """Return the video id, or fail for article targets."""
    if not target.is_video:
        raise MethodFailure(f"{method.value} only handles video targets")
    return target.identifier


def response_error(response) -> str:
    """Short description of a failed ``CrawlerResponse``."""
    if response.status == 0:
        return response.error or "network error"
    return f"HTTP {response.status}"
