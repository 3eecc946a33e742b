# src/pollwise/core/env.py
"""Environment configuration utilities."""

from __future__ import annotations

from dotenv import load_dotenv

from ..config import PollwiseConfig, config


def load_env() -> None:
    """Load environment variables from a local ``.env`` file."""
    load_dotenv()


def get_config() -> PollwiseConfig:
    """Get the global configuration instance."""
    return config


def reload_config() -> PollwiseConfig:
    """Load ``.env`` and build a fresh configuration from the environment."""
    load_env()
    return PollwiseConfig.load()


__all__ = ["load_env", "get_config", "reload_config"]
