# src/pollwise/models/schemas.py
"""JSON schemas for the two contracts Pollwise exposes.

``llm`` is the object the language model is told to return (wire names
``bias_spans``/``grammar_spans``). ``api`` is the HTTP request body as callers
send it and the analysis result as callers receive it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from .base_model import PollwiseBaseModel
from .poll_bias import AnalysisResult, AnalyzeBiasRequest, RawAnalysisOutput

SchemaMode = Literal["validation", "serialization"]

SCHEMA_GROUPS: dict[str, tuple[tuple[type[PollwiseBaseModel], SchemaMode], ...]] = {
    "llm": ((RawAnalysisOutput, "validation"),),
    "api": (
        (AnalyzeBiasRequest, "validation"),
        (AnalysisResult, "serialization"),
    ),
}


def build_schemas() -> dict[str, dict[str, dict[str, Any]]]:
    """Return ``{group: {model name: schema}}`` using wire (alias) names."""
    return {
        group: {
            model.__name__: model.model_json_schema(by_alias=True, mode=mode)
            for model, mode in members
        }
        for group, members in SCHEMA_GROUPS.items()
    }


def write_schemas(out_dir: Path) -> list[Path]:
    """Write every schema to ``out_dir/<group>/<Model>.json`` and return the paths."""
    written: list[Path] = []
    for group, schemas in build_schemas().items():
        group_dir = out_dir / group
        group_dir.mkdir(parents=True, exist_ok=True)
        for name, schema in schemas.items():
            path = group_dir / f"{name}.json"
            path.write_text(json.dumps(schema, indent=2, sort_keys=True) + "\n")
            written.append(path)
    return written


__all__ = ["SCHEMA_GROUPS", "build_schemas", "write_schemas"]
