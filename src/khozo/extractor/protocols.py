"""
Protocol for pluggable extraction strategies.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ExtractionTarget, MethodName, RawContent


@runtime_checkable
class ExtractionMethod(Protocol):
    """One strategy for obtaining raw content from a target."""

    name: MethodName

    async def attempt(self, target: ExtractionTarget) -> RawContent:
        """Produce raw content for the target.

        Raises:
            MethodFailure: when this strategy cannot produce content.
        """
        ...
