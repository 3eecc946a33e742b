# tests/conftest.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from pollwise.config import PollAnalysisConfig, PromptConfig
from pollwise.core.logs import clear_logs
from pollwise.prompts import PromptManager


@dataclass
class FakeCompletion:
    object: Any
    tokens: int = 100
    model: str = "model1"


class FakeCompletionClient:
    """Plays back queued results; exceptions in the queue are raised."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    async def json_completion(self, messages, response_model, **kwargs):
        self.calls.append({"messages": messages, "response_model": response_model, **kwargs})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, dict):
            return FakeCompletion(object=outcome)
        return outcome


def _raw_output(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "bias_spans": [{"substring": "world", "reason": "bias", "suggestion": "planet"}],
        "grammar_spans": [{"substring": "hello", "reason": "grammar"}],
        "rewritten_text": "Hello planet",
    }
    data.update(overrides)
    return data


@pytest.fixture(autouse=True)
def _clear_event_log():
    clear_logs()
    yield
    clear_logs()


@pytest.fixture
def analysis_settings() -> PollAnalysisConfig:
    return PollAnalysisConfig(
        models=["model1", "model2"],
        temperature=0.2,
        max_tokens=512,
        max_attempts=3,
        retry_delay=0,
    )


@pytest.fixture
def prompt_manager() -> PromptManager:
    return PromptManager(PromptConfig(template_dir="", tracing=True))


@pytest.fixture
def raw_output():
    return _raw_output


@pytest.fixture
def fake_client():
    return FakeCompletionClient
