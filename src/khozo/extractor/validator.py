"""
Shallow validation of extracted content.

Catches responses that failed while looking like success: empty bodies and
HTML/XML error pages served with a 200. It does not inspect
wording, so short-but-real content is not rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

REASON_EMPTY = "empty"
REASON_TOO_SHORT = "too short"
REASON_ERROR_PAGE = "looks like an error page"

DEFAULT_MIN_CHARS = 100

_PREAMBLE_TOKENS: Tuple[str, ...] = ("<!doctype", "<html", "<?xml")


@dataclass(slots=True, frozen=True)
class ValidationOutcome:
    valid: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


class ContentValidator:
    """Validates candidate text; rules short-circuit on the first failure."""

    def __init__(self, min_chars: int = DEFAULT_MIN_CHARS) -> None:
        self.min_chars = min_chars

    def validate(self, raw_text: Optional[str]) -> ValidationOutcome:
        if raw_text is None or not raw_text.strip():
            return ValidationOutcome(False, REASON_EMPTY)

        stripped = raw_text.strip()
        if len(stripped) < self.min_chars:
            return ValidationOutcome(False, REASON_TOO_SHORT)

        if stripped.lower().startswith(_PREAMBLE_TOKENS):
            return ValidationOutcome(False, REASON_ERROR_PAGE)

        return ValidationOutcome(True)
