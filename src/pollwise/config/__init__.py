# src/pollwise/config/__init__.py
"""Configuration package for Pollwise."""

from .config import (
    LLMConfig,
    PollAnalysisConfig,
    PollwiseConfig,
    PromptConfig,
    SystemConfig,
    config,
)

__all__ = [
    "LLMConfig",
    "PollAnalysisConfig",
    "PollwiseConfig",
    "PromptConfig",
    "SystemConfig",
    "config",
]
