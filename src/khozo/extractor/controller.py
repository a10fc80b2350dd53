"""
Escalation controller for the extraction cascade.

Tries methods strictly in trust order, keeps a per-run attempt ledger,
validates the first candidate and falls back to the metadata method once
when that candidate is rejected.
"""

from __future__ import annotations

import dataclasses
import time
from typing import List, Optional, Sequence

import structlog

from khozo.exceptions import ExtractionFailed, MethodFailure, ValidationFailure
from khozo.observability import metrics

from .models import (
    CONFIDENCE_BY_METHOD,
    ExtractionAttempt,
    ExtractionResult,
    ExtractionTarget,
    MethodName,
    RawContent,
)
from .normalizer import ContentNormalizer
from .protocols import ExtractionMethod
from .validator import ContentValidator

logger = structlog.get_logger(__name__)


class EscalationController:
    """
    Runs one target through the configured methods.

    The controller holds no per-run state; every ``run`` call builds its own
    ledger, so one instance can serve concurrent runs.
    """

    def __init__(
        self,
        methods: Sequence[ExtractionMethod],
        validator: Optional[ContentValidator] = None,
        normalizer: Optional[ContentNormalizer] = None,
        fallback: Optional[ExtractionMethod] = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            methods: Methods in trust order.
            validator: Candidate validator; defaults to a 100-char minimum.
            normalizer: Content normalizer.
            fallback: Method invoked once when a candidate fails validation.
                Defaults to the metadata method in ``methods``, if configured.
        """
        names = [m.name for m in methods]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate extraction methods: {[n.value for n in names]}")

        self.methods = list(methods)
        self.validator = validator or ContentValidator()
        self.normalizer = normalizer or ContentNormalizer()
        if fallback is None:
            fallback = next((m for m in self.methods if m.name is MethodName.METADATA_SUMMARY), None)
        self.fallback = fallback
        self.logger = logger.bind(component="EscalationController")

    @property
    def max_attempts(self) -> int:
        return len(self.methods) + 1

    async def run(self, target: ExtractionTarget) -> ExtractionResult:
        """
        Produce a validated result for ``target``.

        Raises:
            ExtractionFailed: exactly once, after every permitted attempt failed.
        """
        attempts: List[ExtractionAttempt] = []
        last_reason = "no extraction methods configured"

        self.logger.info(
            "Starting extraction cascade",
            target=target.identifier,
            kind=target.kind.value,
            method_order=[m.name.value for m in self.methods],
        )

        for method in self.methods:
            raw = await self._invoke(method, target, attempts)
            if raw is None:
                last_reason = attempts[-1].error or "unknown error"
                continue

            try:
                return self._accept(method.name, raw, attempts)
            except ValidationFailure as e:
                last_reason = e.reason

            if method.name is MethodName.METADATA_SUMMARY or self.fallback is None:
                break

            self.logger.info(
                "Candidate rejected, falling back to metadata",
                target=target.identifier,
                method=method.name.value,
                reason=last_reason,
            )
            fallback_raw = await self._invoke(self.fallback, target, attempts)
            if fallback_raw is None:
                last_reason = attempts[-1].error or "unknown error"
                break
            try:
                return self._accept(self.fallback.name, fallback_raw, attempts)
            except ValidationFailure as e:
                last_reason = e.reason
            break

        raise self._failed(target, last_reason, attempts)

    async def _invoke(
        self, method: ExtractionMethod, target: ExtractionTarget, attempts: List[ExtractionAttempt]
    ) -> Optional[RawContent]:
        """Call one method and append exactly one attempt to the ledger."""
        if len(attempts) >= self.max_attempts:
            raise RuntimeError("Extraction attempt cap exceeded")

        method_name = method.name.value
        start_time = time.time()
        try:
            self.logger.debug("Attempting extraction", method=method_name, target=target.identifier)
            raw = await method.attempt(target)
        except MethodFailure as e:
            duration = time.time() - start_time
            attempts.append(
                ExtractionAttempt(
                    method_name=method.name,
                    succeeded=False,
                    duration=duration,
                    error=str(e),
                    error_type=type(e).__name__,
                    content_level=e.content_level,
                )
            )
            self.logger.warning(
                "Extractor failed",
                event_type="extractor_failed",
                method=method_name,
                target=target.identifier,
                duration=round(duration, 3),
                error=str(e),
                error_type=type(e).__name__,
            )
            self._record_attempt(method_name, "failure", duration)
            return None
        except Exception as e:
            # Unexpected errors are method failures too; the cascade advances.
            duration = time.time() - start_time
            attempts.append(
                ExtractionAttempt(
                    method_name=method.name,
                    succeeded=False,
                    duration=duration,
                    error=str(e) or type(e).__name__,
                    error_type=type(e).__name__,
                )
            )
            self.logger.error(
                "Extractor failed",
                event_type="extractor_failed",
                method=method_name,
                target=target.identifier,
                duration=round(duration, 3),
                error=str(e),
                error_type=type(e).__name__,
            )
            self._record_attempt(method_name, "error", duration)
            return None

        duration = time.time() - start_time
        attempts.append(ExtractionAttempt(method_name=method.name, succeeded=True, duration=duration, raw_output=raw))
        self.logger.info(
            "Extraction attempt succeeded",
            method=method_name,
            target=target.identifier,
            duration=round(duration, 3),
            segments=len(raw.segments),
        )
        self._record_attempt(method_name, "success", duration)
        return raw

    def _accept(self, method: MethodName, raw: RawContent, attempts: List[ExtractionAttempt]) -> ExtractionResult:
        normalized = self.normalizer.normalize(raw)
        outcome = self.validator.validate(normalized.canonical_text)
        if not outcome.valid:
            reason = outcome.reason or "invalid content"
            attempts[-1] = dataclasses.replace(
                attempts[-1],
                succeeded=False,
                error=f"validation failed: {reason}",
                error_type=ValidationFailure.__name__,
            )
            metrics.increment("extraction_attempts_total", labels={"method": method.value, "outcome": "invalid"})
            self.logger.warning("Candidate failed validation", method=method.value, reason=reason)
            raise ValidationFailure(reason)

        result = ExtractionResult(
            canonical_text=normalized.canonical_text,
            timestamped_text=normalized.timestamped_text,
            segments=normalized.segments,
            method=method,
            confidence_score=CONFIDENCE_BY_METHOD[method],
            validated=True,
            attempts=tuple(attempts),
        )
        metrics.increment("extraction_runs_total", labels={"outcome": "success", "method": method.value})
        self.logger.info(
            "Extraction completed",
            method=method.value,
            confidence_score=result.confidence_score,
            attempts=len(attempts),
            word_count=result.word_count,
        )
        return result

    def _failed(self, target: ExtractionTarget, reason: str, attempts: List[ExtractionAttempt]) -> ExtractionFailed:
        captions_unavailable = bool(attempts) and all(a.content_level for a in attempts)
        metrics.increment("extraction_runs_total", labels={"outcome": "failure", "method": "none"})
        self.logger.warning(
            "All extraction methods failed",
            target=target.identifier,
            attempts=len(attempts),
            reason=reason,
            captions_unavailable=captions_unavailable,
        )
        return ExtractionFailed(reason, attempts=attempts, captions_unavailable=captions_unavailable)

    def _record_attempt(self, method: str, outcome: str, duration: float) -> None:
        metrics.increment("extraction_attempts_total", labels={"method": method, "outcome": outcome})
        metrics.observe("extraction_attempt_duration_seconds", duration, labels={"method": method})
