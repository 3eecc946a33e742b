# src/pollwise/analysis/errors.py
"""Error taxonomy and retry classification for poll analysis."""

from __future__ import annotations

from enum import Enum

from pollwise.core.errors import (
    VALIDATION_SIGNALS,
    CompletionParseError,
    ResponseFormatError,
    is_malformed_output,
)


class ErrorKind(Enum):
    """What a failure means for the caller and for the retry loop."""

    INVALID_INPUT = "invalid_input"  # Caller error, never retried
    VALIDATION = "validation"  # Malformed model output, retried
    UPSTREAM = "upstream"  # Transport or provider failure, not retried
    RETRIES_EXHAUSTED = "retries_exhausted"  # Last validation failure after the ceiling


class PollAnalysisError(Exception):
    """Base class for caller-visible poll analysis failures."""

    kind: ErrorKind = ErrorKind.UPSTREAM

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class InvalidInputError(PollAnalysisError):
    """Raised for empty or whitespace-only poll text."""

    kind = ErrorKind.INVALID_INPUT


class GatewayError(PollAnalysisError):
    """Raised when the completion provider fails or retries run out."""


def classify_error(exc: BaseException) -> ErrorKind:
    """Return ``VALIDATION`` for malformed-output errors, ``UPSTREAM`` for anything else."""
    if isinstance(exc, PollAnalysisError):
        return exc.kind
    if is_malformed_output(exc):
        return ErrorKind.VALIDATION
    return ErrorKind.UPSTREAM


def is_validation_error(exc: BaseException) -> bool:
    """Retry predicate: True when ``exc`` indicates malformed model output."""
    return classify_error(exc) is ErrorKind.VALIDATION


__all__ = [
    "ErrorKind",
    "PollAnalysisError",
    "InvalidInputError",
    "GatewayError",
    "ResponseFormatError",
    "CompletionParseError",
    "VALIDATION_SIGNALS",
    "classify_error",
    "is_malformed_output",
    "is_validation_error",
]
