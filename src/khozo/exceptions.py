"""
Error taxonomy for the extraction cascade.

Only ``ExtractionFailed`` and ``TargetResolutionFailure`` are meant to reach
callers. ``MethodFailure`` and ``ValidationFailure`` are recovered inside the
escalation controller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from khozo.extractor.models import ExtractionAttempt


class KhozoError(Exception):
    """Base class for all khozo errors."""


class TargetResolutionFailure(KhozoError):
    """The input could not be turned into an extraction target."""


class InvalidTarget(TargetResolutionFailure):
    """No matcher matched, or a dereferenced pointer held nonsense."""

    def __init__(self, message: str, *, raw: Optional[str] = None) -> None:
        super().__init__(message)
        self.raw = raw


class MethodFailure(KhozoError):
    """A single extraction method could not produce content."""

    # Failures about the content itself ("no captions") rather than the
    # infrastructure used to reach it.
    content_level: bool = False

    def __init__(self, message: str, *, content_level: Optional[bool] = None) -> None:
        super().__init__(message)
        if content_level is not None:
            self.content_level = content_level


class CaptionsUnavailable(MethodFailure):
    """The source exposes no usable captions for this method."""

    content_level = True


class RateLimited(MethodFailure):
    """The provider answered HTTP 429."""

    def __init__(self, message: str, *, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class MissingCredential(MethodFailure):
    """A keyed provider was selected but no key is provisioned."""

    def __init__(self, credential: str) -> None:
        super().__init__(f"credential '{credential}' is not configured")
        self.credential = credential


class LanguageModelError(KhozoError):
    """The language-model provider rejected or failed a call."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ValidationFailure(KhozoError):
    """An accepted candidate failed validation."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ExtractionFailed(KhozoError):
    """Terminal failure of one cascade run.

    The message is safe to show to users; ``reason`` carries the last
    validation reason or method error.
    """

    def __init__(
        self,
        reason: str,
        *,
        attempts: Sequence["ExtractionAttempt"] = (),
        captions_unavailable: bool = False,
    ) -> None:
        self.reason = reason
        self.attempts = tuple(attempts)
        self.captions_unavailable = captions_unavailable
        super().__init__(self.user_message)

    @property
    def user_message(self) -> str:
        if self.captions_unavailable:
            return (
                "Could not extract captions from this source. It may not have captions "
                "available, or they may be disabled. Please try a different source."
            )
        return f"Content extraction failed: {self.reason}"
