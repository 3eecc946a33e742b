# src/pollwise/analysis/validation.py
"""Shape validation of raw model output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from pollwise.models import RawAnalysisOutput

from .errors import ResponseFormatError


@dataclass(frozen=True)
class ValidationOutcome:
    """Either a validated ``RawAnalysisOutput`` or the reasons it was rejected."""

    value: RawAnalysisOutput | None = None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.value is not None

    def unwrap(self) -> RawAnalysisOutput:
        """Return the value or raise :class:`ResponseFormatError`."""
        if self.value is None:
            raise ResponseFormatError(
                f"Invalid response format: {', '.join(self.errors)}"
            )
        return self.value


def _format_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def validate_analysis_output(data: Any) -> ValidationOutcome:
    """Validate ``data`` against :class:`RawAnalysisOutput` without raising."""
    if isinstance(data, RawAnalysisOutput):
        return ValidationOutcome(value=data)
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, dict):
        return ValidationOutcome(
            errors=(f"expected a JSON object, got {type(data).__name__}",)
        )
    try:
        return ValidationOutcome(value=RawAnalysisOutput.model_validate(data))
    except ValidationError as exc:
        return ValidationOutcome(
            errors=tuple(_format_error(err) for err in exc.errors())
        )


__all__ = ["ValidationOutcome", "validate_analysis_output"]
