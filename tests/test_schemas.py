# tests/test_schemas.py
from __future__ import annotations

import json

from pollwise.models.schemas import build_schemas, write_schemas


def test_llm_schema_uses_wire_names():
    schema = build_schemas()["llm"]["RawAnalysisOutput"]

    assert set(schema["required"]) == {"bias_spans", "grammar_spans", "rewritten_text"}
    assert "bias_findings" not in schema["properties"]


def test_api_schemas_describe_request_and_response():
    api = build_schemas()["api"]

    assert api["AnalyzeBiasRequest"]["required"] == ["pollText"]
    assert "userId" in api["AnalyzeBiasRequest"]["properties"]
    result = api["AnalysisResult"]
    assert {"bias_spans", "grammar_spans", "rewritten_text"} <= set(result["properties"])
    assert "ResolvedSpan" in result["$defs"]


def test_write_schemas_groups_files(tmp_path):
    paths = write_schemas(tmp_path)

    assert sorted(p.relative_to(tmp_path).as_posix() for p in paths) == [
        "api/AnalysisResult.json",
        "api/AnalyzeBiasRequest.json",
        "llm/RawAnalysisOutput.json",
    ]
    written = json.loads((tmp_path / "llm" / "RawAnalysisOutput.json").read_text())
    assert written == build_schemas()["llm"]["RawAnalysisOutput"]
