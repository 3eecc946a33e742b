# tests/test_config.py
from __future__ import annotations

from pollwise.config import PollwiseConfig
from pollwise.config.config import DEFAULT_POLL_MODELS


def test_defaults():
    cfg = PollwiseConfig.load({})

    assert cfg.analysis.models == DEFAULT_POLL_MODELS
    assert cfg.analysis.temperature == 0.2
    assert cfg.analysis.max_tokens == 512
    assert cfg.analysis.max_attempts == 3
    assert cfg.analysis.prompt_key == "poll-bias-analysis"
    assert cfg.llm.models == []
    assert cfg.prompts.template_dir == ""
    assert cfg.system.port == 8000
    assert cfg.system.log_format == ""
    assert cfg.system.log_include_trace is False


def test_environment_overrides():
    cfg = PollwiseConfig.load(
        {
            "OPENAI_API_KEY": "secret",
            "AI_MODELS": "a, b,,c",
            "POLL_ANALYSIS_MODELS": "x",
            "POLL_ANALYSIS_MAX_ATTEMPTS": "5",
            "POLL_ANALYSIS_RETRY_DELAY": "0",
            "PROMPT_TEMPLATE_DIR": "/srv/prompts",
            "PROMPT_TRACING": "false",
            "PORT": "9000",
            "LOG_FORMAT": "json",
            "LOG_INCLUDE_TRACE": "true",
        }
    )

    assert cfg.llm.api_key == "secret"
    assert cfg.llm.models == ["a", "b", "c"]
    assert cfg.analysis.models == ["x"]
    assert cfg.analysis.max_attempts == 5
    assert cfg.analysis.retry_delay == 0
    assert cfg.prompts.template_dir == "/srv/prompts"
    assert cfg.prompts.tracing is False
    assert cfg.system.port == 9000
    assert cfg.system.log_format == "json"
    assert cfg.system.log_include_trace is True
