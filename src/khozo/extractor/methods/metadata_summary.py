"""
Method 6: study notes generated from video metadata when no transcript exists.

The output is clearly labelled as not being a transcript.
"""

from __future__ import annotations

from typing import List

import structlog

from khozo.exceptions import CaptionsUnavailable, LanguageModelError, MethodFailure
from khozo.protocols import CompletionRequest, LanguageModel

from ..models import ExtractionTarget, MethodName, RawContent, VideoMetadata

logger = structlog.get_logger(__name__)

NOT_A_TRANSCRIPT_NOTICE = "[Generated from video metadata. This is not a transcript of the video.]"

SYSTEM_PROMPT = """You create study notes for students preparing for Indian government exams.

The video's captions are not accessible, so you only have its metadata. Explain what the video most likely covers,
its main topics and the key concepts a student should understand. Base everything on the metadata provided and say
so where you are inferring. Never present your notes as a transcript or as quotes from the video."""


def build_metadata_prompt(metadata: VideoMetadata) -> str:
    lines: List[str] = [
        "I have a YouTube video without accessible captions. Create comprehensive study notes from this information.",
        "",
        f"Video Title: {metadata.title}",
        f"Channel: {metadata.channel_title or 'Unknown'}",
        f"Duration: {metadata.duration or 'N/A'}",
        "",
        "Description:",
        metadata.description.strip(),
    ]
    if metadata.chapters:
        lines += ["", "Video Chapters:"] + [f"{c.time}: {c.title}" for c in metadata.chapters]
    if metadata.tags:
        lines += ["", f"Tags: {', '.join(metadata.tags)}"]
    lines += ["", "Return a detailed explanation of what this video covers (at least 500 words)."]
    return "\n".join(lines)


class MetadataSummaryMethod:
    """Last resort; refuses to call the model on thin metadata."""

    name = MethodName.METADATA_SUMMARY

    def __init__(
        self,
        llm: LanguageModel,
        *,
        min_description_chars: int = 200,
        min_output_chars: int = 200,
        max_tokens: int = 4000,
    ) -> None:
        self.llm = llm
        self.min_description_chars = min_description_chars
        self.min_output_chars = min_output_chars
        self.max_tokens = max_tokens
        self.logger = logger.bind(component="MetadataSummaryMethod")

    async def attempt(self, target: ExtractionTarget) -> RawContent:
        metadata = target.metadata
        if metadata is None:
            raise CaptionsUnavailable("no metadata available")
        if len(metadata.description.strip()) <= self.min_description_chars:
            raise CaptionsUnavailable("insufficient metadata to generate content")

        request = CompletionRequest(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=build_metadata_prompt(metadata),
            max_tokens=self.max_tokens,
            temperature=0.3,
        )
        try:
            response = await self.llm.complete(request)
        except LanguageModelError as e:
            raise MethodFailure(f"metadata summary call failed: {e}") from e

        content = response.content.strip()
        if len(content) < self.min_output_chars:
            raise MethodFailure(f"generated content too short ({len(content)} < {self.min_output_chars} chars)")

        self.logger.info("Generated notes from metadata", video_id=metadata.video_id, length=len(content))
        return RawContent(text=f"{NOT_A_TRANSCRIPT_NOTICE}\n\n{content}")
