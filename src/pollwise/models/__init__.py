# src/pollwise/models/__init__.py
"""Pydantic models used by Pollwise."""

from .base_model import PollwiseBaseModel
from .poll_bias import (
    AnalysisResult,
    AnalyzeBiasRequest,
    RawAnalysisOutput,
    RawFinding,
    ResolvedSpan,
)

__all__ = [
    "PollwiseBaseModel",
    "RawFinding",
    "RawAnalysisOutput",
    "ResolvedSpan",
    "AnalyzeBiasRequest",
    "AnalysisResult",
]
