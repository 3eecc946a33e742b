# src/pollwise/core/errors.py
"""Errors raised when a completion's content cannot be used."""

from __future__ import annotations

from pydantic import ValidationError


class ResponseFormatError(ValueError):
    """Model output failed shape validation."""


class CompletionParseError(ValueError):
    """Model output could not be parsed as JSON."""


# Substrings that mark an error message as malformed model output. Matching on
# message text is brittle; the typed check in ``is_malformed_output`` runs first.
VALIDATION_SIGNALS: tuple[str, ...] = (
    "Failed to parse",
    "Invalid response",
    "Bias span",
    "ValidationError",
)

MALFORMED_OUTPUT_TYPES: tuple[type[BaseException], ...] = (
    ResponseFormatError,
    CompletionParseError,
    ValidationError,
)


def is_malformed_output(exc: BaseException) -> bool:
    """Return True if ``exc`` itself reports unusable model output.

    Only the raised exception is inspected: its type, its type name and its
    message. Causes are ignored, so a transport failure chained from a parse
    error still counts as a transport failure.
    """
    if isinstance(exc, MALFORMED_OUTPUT_TYPES):
        return True
    if type(exc).__name__ == "ValidationError":
        return True
    message = str(exc)
    return any(signal in message for signal in VALIDATION_SIGNALS)


__all__ = [
    "ResponseFormatError",
    "CompletionParseError",
    "VALIDATION_SIGNALS",
    "MALFORMED_OUTPUT_TYPES",
    "is_malformed_output",
]
