"""
khozo - multi-strategy content extraction for exam and job sources.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .container import DependencyContainer
from .pipeline import ExtractionOutcome, ExtractionPipeline

__all__ = ["__version__", "Config", "DependencyContainer", "ExtractionOutcome", "ExtractionPipeline"]
