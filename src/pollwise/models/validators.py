# src/pollwise/models/validators.py
"""Custom validators for Pydantic models."""

from __future__ import annotations


def validate_non_empty(value: str) -> str:
    """Ensure ``value`` is not empty or whitespace."""
    if not value.strip():
        raise ValueError("must not be empty")
    return value


def blank_to_none(value: object) -> object:
    """Map blank strings to ``None`` so optional text fields are either set or absent."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


__all__ = ["validate_non_empty", "blank_to_none"]
