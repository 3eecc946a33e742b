# src/pollwise/models/poll_bias.py
"""Pydantic models for poll bias and grammar analysis.

``RawFinding`` and ``RawAnalysisOutput`` describe what the language model is asked
to return: quoted substrings without offsets. ``ResolvedSpan`` and
``AnalysisResult`` are the caller-facing shapes, with half-open ``[start, end)``
character offsets into the original poll text.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from .base_model import PollwiseBaseModel
from .validators import blank_to_none, validate_non_empty


class RawFinding(PollwiseBaseModel):
    """A single bias or grammar issue as reported by the model."""

    substring: str = Field(
        ...,
        min_length=1,
        description="Verbatim quote from the original poll text",
    )
    reason: str = Field(..., description="Short single-sentence explanation")
    suggestion: str | None = Field(
        default=None, description="Neutral or corrected replacement text"
    )

    @field_validator("reason")
    @classmethod
    def _reason_not_blank(cls, value: str) -> str:
        return validate_non_empty(value)

    @field_validator("suggestion", mode="before")
    @classmethod
    def _blank_suggestion(cls, value: Any) -> Any:
        return blank_to_none(value)


class RawAnalysisOutput(PollwiseBaseModel):
    """Validated-shape model output whose findings are not yet located in the text."""

    bias_findings: list[RawFinding] = Field(..., alias="bias_spans")
    grammar_findings: list[RawFinding] = Field(..., alias="grammar_spans")
    rewritten_text: str = Field(..., description="Neutral rewrite of the poll text")

    @field_validator("rewritten_text")
    @classmethod
    def _rewrite_not_blank(cls, value: str) -> str:
        return validate_non_empty(value)


class ResolvedSpan(PollwiseBaseModel):
    """A finding located at ``[start, end)`` in the original text."""

    start: int = Field(..., ge=0)
    end: int = Field(..., gt=0)
    reason: str
    suggestion: str | None = None

    @model_validator(mode="after")
    def _check_order(self) -> ResolvedSpan:
        if self.start >= self.end:
            raise ValueError(
                f"span start ({self.start}) must be less than end ({self.end})"
            )
        return self

    def overlaps(self, start: int, end: int) -> bool:
        """Return True if ``[start, end)`` overlaps this span."""
        return start < self.end and end > self.start


class AnalyzeBiasRequest(PollwiseBaseModel):
    """HTTP request body for poll bias analysis."""

    poll_text: str = Field(..., alias="pollText", description="Poll message to analyze")
    user_id: str | None = Field(default=None, alias="userId")


class AnalysisResult(PollwiseBaseModel):
    """Caller-facing result of a poll text analysis."""

    bias_spans: list[ResolvedSpan] = Field(default_factory=list)
    grammar_spans: list[ResolvedSpan] = Field(default_factory=list)
    rewritten_text: str


__all__ = [
    "RawFinding",
    "RawAnalysisOutput",
    "ResolvedSpan",
    "AnalyzeBiasRequest",
    "AnalysisResult",
]
