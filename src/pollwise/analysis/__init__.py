# src/pollwise/analysis/__init__.py
"""Poll bias and grammar analysis."""

from .errors import (
    ErrorKind,
    GatewayError,
    InvalidInputError,
    PollAnalysisError,
    classify_error,
    is_validation_error,
)
from .service import PollBiasAnalyzer, analyze_poll_text, get_analyzer
from .spans import resolve_analysis, resolve_span, resolve_spans
from .validation import ValidationOutcome, validate_analysis_output

__all__ = [
    "ErrorKind",
    "PollAnalysisError",
    "InvalidInputError",
    "GatewayError",
    "classify_error",
    "is_validation_error",
    "PollBiasAnalyzer",
    "analyze_poll_text",
    "get_analyzer",
    "resolve_span",
    "resolve_spans",
    "resolve_analysis",
    "ValidationOutcome",
    "validate_analysis_output",
]
