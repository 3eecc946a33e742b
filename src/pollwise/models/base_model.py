# src/pollwise/models/base_model.py
"""Shared Pydantic base model tolerant of extra keys in LLM output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PollwiseBaseModel(BaseModel):
    """Base model that ignores unexpected keys and accepts field names or aliases."""

    # Models routinely add keys nobody asked for; ignore them instead of failing validation.
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


__all__ = ["PollwiseBaseModel"]
