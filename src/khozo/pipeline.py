"""
Pipeline orchestration for khozo: resolve, enrich, extract.
"""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from uuid import uuid4

import structlog
from structlog.contextvars import bound_contextvars

from khozo.extractor.controller import EscalationController
from khozo.extractor.models import ExtractionResult, ExtractionTarget, OrganizationQuery, VideoMetadata
from khozo.extractor.normalizer import estimated_read_minutes
from khozo.locator import ResourceLocator
from khozo.protocols import MetadataSource


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of one pipeline run."""

    run_id: str
    target: ExtractionTarget
    result: ExtractionResult
    metadata: Optional[VideoMetadata]
    processing_time: float
    estimated_read_minutes: int

    @property
    def title(self) -> Optional[str]:
        return self.metadata.title if self.metadata else None

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data.update(
            run_id=self.run_id,
            source_url=self.target.source_url,
            identifier=self.target.identifier,
            kind=self.target.kind.value,
            title=self.title,
            estimated_read_minutes=self.estimated_read_minutes,
            processing_time=round(self.processing_time, 3),
        )
        return data


PipelineResult = Union[ExtractionOutcome, OrganizationQuery]


class ExtractionPipeline:
    """
    Runs one raw input through the locator and the escalation controller.

    Metadata is fetched once per video run and attached to the target before
    the cascade starts, so methods never look it up themselves.
    """

    def __init__(
        self,
        locator: ResourceLocator,
        controller: EscalationController,
        metadata_source: Optional[MetadataSource] = None,
        *,
        words_per_minute: int = 200,
    ) -> None:
        self.locator = locator
        self.controller = controller
        self.metadata_source = metadata_source
        self.words_per_minute = words_per_minute
        self.logger = structlog.get_logger(self.__class__.__name__)

    async def run(self, raw: str, *, language: Optional[str] = None) -> PipelineResult:
        """
        Extract content for ``raw``.

        Returns an ``OrganizationQuery`` instead of extracting when the input
        only names an organization.

        Raises:
            TargetResolutionFailure: the input could not be resolved.
            ExtractionFailed: every extraction method failed.
        """
        run_id = str(uuid4())
        with bound_contextvars(run_id=run_id):
            resolution = await self.locator.resolve(raw, language=language)
            if isinstance(resolution, OrganizationQuery):
                return resolution
            return await self._extract(resolution, run_id)

    async def extract(self, target: ExtractionTarget) -> ExtractionOutcome:
        """Run the cascade for an already resolved target."""
        run_id = str(uuid4())
        with bound_contextvars(run_id=run_id):
            return await self._extract(target, run_id)

    async def _extract(self, target: ExtractionTarget, run_id: str) -> ExtractionOutcome:
        start_time = time.time()
        metadata = target.metadata
        if metadata is None and target.is_video and self.metadata_source is not None:
            metadata = await self.metadata_source.get_metadata(target.identifier)
            if metadata is not None:
                target = dataclasses.replace(target, metadata=metadata)

        self.logger.info(
            "Extraction run started",
            target=target.identifier,
            kind=target.kind.value,
            language=target.language,
            has_metadata=metadata is not None,
        )
        result = await self.controller.run(target)
        processing_time = time.time() - start_time

        self.logger.info(
            "Extraction run finished",
            target=target.identifier,
            method=result.method.value,
            confidence_score=result.confidence_score,
            processing_time=round(processing_time, 3),
        )
        return ExtractionOutcome(
            run_id=run_id,
            target=target,
            result=result,
            metadata=metadata,
            processing_time=processing_time,
            estimated_read_minutes=estimated_read_minutes(result.canonical_text, self.words_per_minute),
        )
