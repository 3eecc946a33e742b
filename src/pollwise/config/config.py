# src/pollwise/config/config.py
"""Configuration system for Pollwise."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_POLL_MODELS = [
    "meta-llama/Llama-4-Maverick-17B-128E-Instruct-FP8",
    "Qwen/Qwen3-235B-A22B-fp8-tput",
]


def _split_csv(value: Any) -> Any:
    """Split a comma-separated environment value into a clean list."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class _EnvSection(BaseModel):
    """Base for config sections; field aliases are environment variable names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LLMConfig(_EnvSection):
    """LLM provider configuration."""

    api_base: str = Field(
        default="https://api.together.xyz/v1", validation_alias="OPENAI_API_BASE"
    )
    api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    # litellm provider route for the OpenAI-compatible endpoint above.
    provider: str = Field(default="openai", validation_alias="LLM_PROVIDER")
    # Used when a caller does not pass its own model list.
    models: list[str] = Field(default_factory=list, validation_alias="AI_MODELS")
    timeout: float = Field(default=300.0, validation_alias="LLM_TIMEOUT")
    retries: int = Field(default=3, ge=0, validation_alias="LLM_RETRIES")

    @field_validator("models", mode="before")
    @classmethod
    def _split_models(cls, value: Any) -> Any:
        return _split_csv(value)


class PollAnalysisConfig(_EnvSection):
    """Poll bias analysis settings."""

    models: list[str] = Field(
        default_factory=lambda: list(DEFAULT_POLL_MODELS),
        validation_alias="POLL_ANALYSIS_MODELS",
    )
    temperature: float = Field(
        default=0.2, ge=0.0, le=2.0, validation_alias="POLL_ANALYSIS_TEMPERATURE"
    )
    max_tokens: int = Field(default=512, gt=0, validation_alias="POLL_ANALYSIS_MAX_TOKENS")
    max_attempts: int = Field(default=3, ge=1, validation_alias="POLL_ANALYSIS_MAX_ATTEMPTS")
    retry_delay: float = Field(default=0.5, ge=0.0, validation_alias="POLL_ANALYSIS_RETRY_DELAY")
    prompt_key: str = Field(
        default="poll-bias-analysis", validation_alias="POLL_ANALYSIS_PROMPT_KEY"
    )

    @field_validator("models", mode="before")
    @classmethod
    def _split_models(cls, value: Any) -> Any:
        return _split_csv(value)


class PromptConfig(_EnvSection):
    """Prompt template store configuration."""

    template_dir: str = Field(default="", validation_alias="PROMPT_TEMPLATE_DIR")
    tracing: bool = Field(default=True, validation_alias="PROMPT_TRACING")


class SystemConfig(_EnvSection):
    """System configuration settings."""

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="", validation_alias="POLLWISE_LOG_FILE")
    log_format: str = Field(default="", validation_alias="LOG_FORMAT")
    log_include_trace: bool = Field(default=False, validation_alias="LOG_INCLUDE_TRACE")
    port: int = Field(default=8000, validation_alias="PORT")


class PollwiseConfig(BaseModel):
    """Main configuration class."""

    llm: LLMConfig = LLMConfig()
    analysis: PollAnalysisConfig = PollAnalysisConfig()
    prompts: PromptConfig = PromptConfig()
    system: SystemConfig = SystemConfig()

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> PollwiseConfig:
        """Load configuration from environment variables."""
        env = dict(os.environ if environ is None else environ)
        return cls(
            llm=LLMConfig.model_validate(env),
            analysis=PollAnalysisConfig.model_validate(env),
            prompts=PromptConfig.model_validate(env),
            system=SystemConfig.model_validate(env),
        )


# Global configuration instance; a local .env fills in unset variables
load_dotenv()
config = PollwiseConfig.load()
