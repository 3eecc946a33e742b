# src/pollwise/prompts/manager.py
"""File-backed prompt templates and call tracing.

Prompts live in ``<template_dir>/<key>.yaml`` either as a list of chat messages
or as a mapping with a ``messages`` list::

    messages:
      - role: system
        content: You review SMS polls for bias.
      - role: user
        content: 'Poll: {{ pollText }}'

Message content is rendered with Jinja2. Any problem with a managed template
falls back to the caller's built-in messages.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

import yaml
from jinja2 import Environment, StrictUndefined, TemplateError
from pydantic import BaseModel

from pollwise.config import PromptConfig, config
from pollwise.core.logs import EventType, LogLevel, Priority, get_event_logger, get_logger

event_logger = get_event_logger()
logger = get_logger(__name__)

R = TypeVar("R")

VALID_CHAT_ROLES: tuple[str, ...] = ("system", "user", "assistant")

ChatMessage = dict[str, str]


def is_valid_chat_role(role: Any) -> bool:
    """Return True if ``role`` is a chat role the completion API accepts."""
    return role in VALID_CHAT_ROLES


def _extract_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, Mapping):
                parts.append(str(block.get("text", block.get("content", ""))))
        return "".join(parts)
    return "" if content is None else str(content)


def _serialize_output(result: Any) -> dict[str, Any]:
    if result is None:
        return {"result": None}
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if hasattr(result, "object") and isinstance(result.object, BaseModel):
        return {
            "object": result.object.model_dump(mode="json", by_alias=True),
            "model": getattr(result, "model", None),
            "tokens": getattr(result, "tokens", None),
        }
    if isinstance(result, Mapping):
        return dict(result)
    if isinstance(result, list):
        return {"result": result}
    return {"result": str(result)}


class PromptManager:
    """Loads managed prompt templates and traces LLM calls.

    Parameters
    ----------
    settings:
        Prompt configuration; defaults to the global ``config.prompts``.
    """

    def __init__(self, settings: PromptConfig | None = None) -> None:
        self.settings = settings or config.prompts
        self.template_dir = (
            Path(self.settings.template_dir) if self.settings.template_dir else None
        )
        self._jinja = Environment(
            undefined=StrictUndefined, keep_trailing_newline=True, autoescape=False
        )
        if not self.enabled:
            logger.info("PROMPT_TEMPLATE_DIR not set - using built-in prompts")

    @property
    def enabled(self) -> bool:
        """True when a managed template directory is configured and exists."""
        return self.template_dir is not None and self.template_dir.is_dir()

    def render_messages(
        self,
        messages: Sequence[Mapping[str, str]],
        variables: Mapping[str, Any] | None = None,
    ) -> list[ChatMessage]:
        """Render each message's content as a Jinja2 template."""
        if not variables:
            return [dict(message) for message in messages]
        return [
            {
                "role": message["role"],
                "content": self._jinja.from_string(message["content"]).render(
                    **variables
                ),
            }
            for message in messages
        ]

    def _read_template(self, prompt_key: str) -> list[ChatMessage] | None:
        if self.template_dir is None:
            return None
        path = self.template_dir / f"{prompt_key}.yaml"
        if not path.is_file():
            logger.debug("Prompt %r not found at %s, using fallback", prompt_key, path)
            return None

        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        raw_messages = data.get("messages") if isinstance(data, Mapping) else data
        if not isinstance(raw_messages, list):
            return None

        messages: list[ChatMessage] = []
        for item in raw_messages:
            if not isinstance(item, Mapping):
                continue
            role = item.get("role") or "user"
            if not is_valid_chat_role(role):
                logger.warning(
                    "Invalid role %r in prompt %r, skipping message", role, prompt_key
                )
                continue
            messages.append({"role": role, "content": _extract_content(item.get("content"))})

        if not messages:
            logger.warning("No valid messages in prompt %r, using fallback", prompt_key)
            return None
        return messages

    def load_prompt_messages(
        self,
        prompt_key: str,
        fallback_messages: Sequence[Mapping[str, str]],
        variables: Mapping[str, Any] | None = None,
    ) -> list[ChatMessage]:
        """Return the managed prompt for ``prompt_key`` or the rendered fallback."""
        if self.enabled:
            try:
                messages = self._read_template(prompt_key)
                if messages:
                    rendered = self.render_messages(messages, variables)
                    event_logger.info(
                        f"Loaded managed prompt {prompt_key}",
                        event_type=EventType.PROMPT_LOAD,
                        component=__name__,
                        metadata={"prompt_key": prompt_key, "message_count": len(rendered)},
                    )
                    return rendered
            except (OSError, yaml.YAMLError, TemplateError) as exc:
                event_logger.warning(
                    f'Failed to load prompt "{prompt_key}", using fallback: {exc}',
                    event_type=EventType.PROMPT_LOAD,
                    component=__name__,
                    metadata={"prompt_key": prompt_key, "error_type": type(exc).__name__},
                )

        return self.render_messages(fallback_messages, variables)

    def _record(
        self,
        name: str,
        started: float,
        input: Mapping[str, Any] | None,
        metadata: Mapping[str, Any] | None,
        output: dict[str, Any],
        success: bool,
    ) -> None:
        try:
            event_logger.log(
                LogLevel.INFO if success else LogLevel.WARNING,
                f"Traced {name}",
                event_type=EventType.LLM_REQUEST,
                priority=Priority.NORMAL if success else Priority.HIGH,
                component=__name__,
                user_id=(metadata or {}).get("userId"),
                processing_time_ms=(time.time() - started) * 1000,
                metadata={
                    "trace": name,
                    "input": dict(input or {}),
                    "output": output,
                    "metadata": dict(metadata or {}),
                    "success": success,
                },
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Tracing failed for %r: %s", name, exc)

    async def traced(
        self,
        name: str,
        fn: Callable[[], Awaitable[R]],
        input: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> R:
        """Await ``fn()`` and record a trace event when tracing is enabled.

        Exceptions raised by ``fn`` propagate unchanged.
        """
        if not self.settings.tracing:
            return await fn()

        started = time.time()
        try:
            result = await fn()
        except Exception as exc:
            self._record(
                name, started, input, metadata, {"error": str(exc), "success": False}, False
            )
            raise
        self._record(name, started, input, metadata, _serialize_output(result), True)
        return result


__all__ = ["PromptManager", "VALID_CHAT_ROLES", "is_valid_chat_role"]
