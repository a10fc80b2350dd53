"""Logging and metrics for the extraction cascade."""

from __future__ import annotations

from .logging import configure_logging
from .metrics import METRICS, increment, observe, start_exporter

__all__ = ["configure_logging", "METRICS", "increment", "observe", "start_exporter"]
