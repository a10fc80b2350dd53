"""Turns raw URLs and queries into extraction targets."""

from .resolver import (
    HttpPointerReader,
    Resolution,
    ResourceLocator,
    extract_video_id,
    match_organization,
    normalize_article_url,
)

__all__ = [
    "HttpPointerReader",
    "Resolution",
    "ResourceLocator",
    "extract_video_id",
    "match_organization",
    "normalize_article_url",
]
