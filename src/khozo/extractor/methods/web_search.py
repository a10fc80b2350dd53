"""
Method 5: ask the language model to find the content with its web-search tool.
"""

from __future__ import annotations

import structlog

from khozo.exceptions import LanguageModelError, MethodFailure
from khozo.protocols import CompletionRequest, LanguageModel

from ..models import ExtractionTarget, MethodName, RawContent

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = """You retrieve source content for students preparing for Indian government exams.

Your task:
1. Search the web for the resource the user names.
2. Reproduce its content as completely and faithfully as you can find it.
3. Keep headings, lists and the original order of points.
4. Leave out navigation, adverts, comments and cookie notices.

Do not add commentary or explanations. If you cannot find the content, say so briefly."""

VIDEO_PROMPT = """Find the transcript, or the most detailed available account of the spoken content, of this YouTube video:
{url}

Search for it; do not rely on what you remember. Return only the content."""

ARTICLE_PROMPT = """Find and extract the main content of this page:
{url}

Search for it; do not rely on what you remember. Return only the article text with its structure preserved."""


class WebSearchMethod:
    """Prose-only content gathered through forced web search."""

    name = MethodName.WEB_SEARCH

    def __init__(self, llm: LanguageModel, *, min_chars: int = 500, max_tokens: int = 8000) -> None:
        self.llm = llm
        self.min_chars = min_chars
        self.max_tokens = max_tokens
        self.logger = logger.bind(component="WebSearchMethod")

    def build_request(self, target: ExtractionTarget) -> CompletionRequest:
        template = VIDEO_PROMPT if target.is_video else ARTICLE_PROMPT
        return CompletionRequest(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=template.format(url=target.watch_url),
            enable_web_search=True,
            force_web_search=True,
            max_tokens=self.max_tokens,
            temperature=0.0,
        )

    async def attempt(self, target: ExtractionTarget) -> RawContent:
        try:
            response = await self.llm.complete(self.build_request(target))
        except LanguageModelError as e:
            raise MethodFailure(f"web search call failed: {e}") from e

        if not response.web_search_used:
            raise MethodFailure("model answered without using web search")

        content = response.content.strip()
        if len(content) < self.min_chars:
            raise MethodFailure(f"web search content too short ({len(content)} < {self.min_chars} chars)")

        self.logger.info("Web search produced content", target=target.identifier, length=len(content))
        return RawContent(text=content)
