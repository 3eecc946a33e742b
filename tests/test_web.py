# tests/test_web.py
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from pollwise.analysis import PollBiasAnalyzer, get_analyzer
from pollwise.analysis.errors import CompletionParseError
from pollwise.web.main import app


@pytest.fixture
def client_for(analysis_settings, prompt_manager):
    def build(completion_client) -> TestClient:
        analyzer = PollBiasAnalyzer(
            llm_client=completion_client,
            prompt_manager=prompt_manager,
            settings=analysis_settings,
        )
        app.dependency_overrides[get_analyzer] = lambda: analyzer
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


def test_health():
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_analyze_bias(client_for, fake_client, raw_output):
    completion = fake_client(raw_output())
    client = client_for(completion)

    response = client.post(
        "/api/polls/analyze-bias", json={"pollText": "hello world", "userId": "user-1"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "bias_spans": [{"start": 6, "end": 11, "reason": "bias", "suggestion": "planet"}],
        "grammar_spans": [{"start": 0, "end": 5, "reason": "grammar"}],
        "rewritten_text": "Hello planet",
    }
    assert completion.calls[0]["user_id"] == "user-1"


def test_blank_poll_text_is_bad_request(client_for, fake_client, raw_output):
    completion = fake_client(raw_output())
    client = client_for(completion)

    response = client.post("/api/polls/analyze-bias", json={"pollText": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Poll text cannot be empty"
    assert completion.calls == []


def test_missing_poll_text_is_rejected(client_for, fake_client, raw_output):
    client = client_for(fake_client(raw_output()))

    response = client.post("/api/polls/analyze-bias", json={})

    assert response.status_code == 422


@pytest.mark.parametrize(
    "failure",
    [Exception("Network error"), CompletionParseError("Failed to parse")],
)
def test_gateway_failures_are_bad_gateway(client_for, fake_client, failure):
    client = client_for(fake_client(failure))

    response = client.post("/api/polls/analyze-bias", json={"pollText": "hello world"})

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to analyze poll text for bias"
