"""
Capabilities the extraction core consumes from its collaborators.

The core never talks to the network directly; it is handed objects that
satisfy these protocols. Default implementations live in
``khozo.crawler.http_client``, ``khozo.llm.client``,
``khozo.config.credentials`` and ``khozo.extractor.metadata_source``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from khozo.crawler.http_client import CrawlerResponse
    from khozo.extractor.models import VideoMetadata


@runtime_checkable
class Fetcher(Protocol):
    """Fetch remote HTTP content."""

    async def fetch(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> "CrawlerResponse":
        ...


@runtime_checkable
class PointerReader(Protocol):
    """Read a previously stored indirection record (e.g. an object-storage file)."""

    async def read_pointer(self, location: str) -> str:
        ...


@dataclass(slots=True, frozen=True)
class CompletionRequest:
    system_prompt: str
    user_prompt: str
    enable_web_search: bool = False
    force_web_search: bool = False
    max_tokens: int = 4096
    temperature: float = 0.3


@dataclass(slots=True, frozen=True)
class CompletionResponse:
    content: str
    tokens_used: Dict[str, int] = field(default_factory=dict)
    web_search_used: bool = False

    @property
    def total_tokens(self) -> int:
        return sum(self.tokens_used.values())


@runtime_checkable
class LanguageModel(Protocol):
    """Call a language model, optionally with a web-search tool."""

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        ...


@runtime_checkable
class CredentialStore(Protocol):
    """Key-value lookup of third-party API keys."""

    def get(self, name: str) -> Optional[str]:
        ...


@runtime_checkable
class MetadataSource(Protocol):
    """Look up descriptive metadata for a video."""

    async def get_metadata(self, video_id: str) -> Optional["VideoMetadata"]:
        ...
