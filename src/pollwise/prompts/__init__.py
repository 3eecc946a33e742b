# src/pollwise/prompts/__init__.py
"""Managed prompt templates and tracing."""

from .manager import VALID_CHAT_ROLES, PromptManager, is_valid_chat_role

__all__ = ["PromptManager", "VALID_CHAT_ROLES", "is_valid_chat_role"]
