"""
Resource locator: turns loosely structured input into an extraction target.
"""

from __future__ import annotations

from typing import Optional, Union
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import structlog

from khozo.exceptions import InvalidTarget
from khozo.extractor.models import ExtractionTarget, OrganizationQuery, TargetKind
from khozo.protocols import Fetcher, PointerReader

from .patterns import (
    ORGANIZATION_QUERY,
    STORAGE_POINTER_MARKER,
    TRACKING_PARAMS,
    VIDEO_URL_PATTERNS,
    YOUTUBE_HOSTS,
)

logger = structlog.get_logger(__name__)

Resolution = Union[ExtractionTarget, OrganizationQuery]


def match_organization(query: str) -> Optional[OrganizationQuery]:
    """Return a disambiguation signal when the query names only an organization."""
    match = ORGANIZATION_QUERY.match(query)
    if not match:
        return None
    organization = " ".join(match.group(1).upper().split())
    return OrganizationQuery(organization=organization, query=query.strip())


def extract_video_id(url: str) -> Optional[str]:
    """Apply the ordered URL matchers; first match wins."""
    candidate = url.strip()
    for family, pattern in VIDEO_URL_PATTERNS:
        match = pattern.search(candidate)
        if match:
            logger.debug("Matched video URL family", family=family)
            return match.group(1)
    return None


def is_storage_pointer(url: str) -> bool:
    return STORAGE_POINTER_MARKER in url


def looks_like_url(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered.startswith(("http://", "https://")):
        return True
    return any(host in lowered for host in YOUTUBE_HOSTS)


def normalize_article_url(url: str) -> str:
    """Canonical form for non-video targets."""
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidTarget(f"Not a valid http(s) URL: {url}", raw=url)

    query = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if not key.lower().startswith("utm_") and key.lower() not in TRACKING_PARAMS
    ]
    path = parsed.path or "/"
    return urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, urlencode(query), "")
    )


class HttpPointerReader:
    """Dereferences object-storage pointers by downloading their text body."""

    def __init__(self, fetcher: Fetcher) -> None:
        self.fetcher = fetcher

    async def read_pointer(self, location: str) -> str:
        response = await self.fetcher.fetch(location)
        if not response.ok:
            raise InvalidTarget(
                f"Failed to read pointer from storage: HTTP {response.status or response.error}", raw=location
            )
        return response.text()


class ResourceLocator:
    """
    Resolve a raw string into an ``ExtractionTarget`` or an ``OrganizationQuery``.

    The organization check runs first because a bare "SSC" must branch to the
    list-all-opportunities flow rather than single-resource extraction.
    """

    def __init__(self, pointer_reader: Optional[PointerReader] = None, *, default_language: str = "en") -> None:
        self.pointer_reader = pointer_reader
        self.default_language = default_language
        self.logger = logger.bind(component="ResourceLocator")

    async def resolve(self, raw: str, *, language: Optional[str] = None) -> Resolution:
        if raw is None or not raw.strip():
            raise InvalidTarget("Empty input", raw=raw)

        value = raw.strip()
        language = language or self.default_language

        organization = match_organization(value)
        if organization is not None:
            self.logger.info("Ambiguous organization query", organization=organization.organization)
            return organization

        if not looks_like_url(value):
            raise InvalidTarget(f"Could not resolve input to a resource: {value}", raw=raw)

        if is_storage_pointer(value):
            value = await self._dereference(value)

        return self._match(value, language=language, raw=raw)

    async def _dereference(self, location: str) -> str:
        if self.pointer_reader is None:
            raise InvalidTarget("Input is a storage pointer but no pointer reader is configured", raw=location)

        self.logger.info("Dereferencing storage pointer", location=location)
        content = (await self.pointer_reader.read_pointer(location)).strip()

        # Basic sanity check on what the pointer held.
        if not content or not (
            any(host in content for host in ("youtube.com", "youtu.be")) or content.lower().startswith("http")
        ):
            raise InvalidTarget(f"Pointer content does not look like a resource URL: {content[:100]!r}", raw=location)

        self.logger.info("Pointer dereferenced", url=content[:200])
        return content

    def _match(self, url: str, *, language: str, raw: str) -> ExtractionTarget:
        video_id = extract_video_id(url)
        if video_id:
            return ExtractionTarget(
                identifier=video_id,
                kind=TargetKind.VIDEO,
                source_url=url,
                language=language,
            )

        host = (urlparse(url).hostname or "").lower()
        if any(host == h or host.endswith("." + h) for h in YOUTUBE_HOSTS):
            raise InvalidTarget(f"Invalid YouTube URL - could not extract video ID from: {url}", raw=raw)

        return ExtractionTarget(
            identifier=normalize_article_url(url),
            kind=TargetKind.ARTICLE,
            source_url=url,
            language=language,
        )
