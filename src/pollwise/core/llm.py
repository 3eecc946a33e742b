# src/pollwise/core/llm.py
"""Lightweight wrapper around LiteLLM for async JSON completions with model fallback."""

from __future__ import annotations

import json
import re
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import dirtyjson
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from pollwise.config import LLMConfig, config
from pollwise.core.errors import (
    CompletionParseError,
    ResponseFormatError,
    is_malformed_output,
)
from pollwise.core.logs import EventType, Priority, get_event_logger

# Initialize EventLogger for LLM operations
event_logger = get_event_logger()

T = TypeVar("T", bound=BaseModel)

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\s*```$")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_OBJECT_RE = re.compile(r"({.*})", re.DOTALL)

# Client errors that are worth another round through the model list.
_RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


@dataclass
class CompletionResult(Generic[T]):
    """A validated completion together with the model that produced it."""

    object: T
    model: str
    tokens: int | None = None


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _message_content(response: Any) -> str:
    choices = _field(response, "choices") or []
    if not choices:
        raise CompletionParseError("Failed to parse completion: response has no choices")
    message = _field(choices[0], "message")
    content = _field(message, "content")
    if isinstance(content, list):
        # Content-part arrays: keep the text parts only.
        content = "".join(
            str(_field(part, "text", "")) for part in content if _field(part, "text")
        )
    if not content:
        raise CompletionParseError("Failed to parse completion: empty message content")
    return str(content)


def _total_tokens(response: Any) -> int | None:
    usage = _field(response, "usage")
    if usage is None:
        return None
    total = _field(usage, "total_tokens")
    return int(total) if total is not None else None


def clean_json_text(content: str) -> str:
    """Strip Markdown code fences and trailing commas from model output."""
    text = content.strip()
    if text.startswith("```"):
        text = _FENCE_START_RE.sub("", text)
        text = _FENCE_END_RE.sub("", text).strip()
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def parse_json_content(content: str) -> Any:
    """Decode model output, salvaging the outermost JSON object when needed.

    Raises
    ------
    CompletionParseError
        If no JSON value can be recovered from ``content``.
    """
    text = clean_json_text(content)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        match = _OBJECT_RE.search(text)
        if not match:
            raise CompletionParseError(f"Failed to parse JSON response: {exc}") from exc
        try:
            return dirtyjson.loads(match.group(1))
        except (ValueError, dirtyjson.Error) as salvage_exc:
            raise CompletionParseError(
                f"Failed to parse JSON response: {salvage_exc}"
            ) from salvage_exc


def _status_code(exc: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_permanent_error(exc: BaseException) -> bool:
    """Return True for provider client errors that retrying cannot fix."""
    status = _status_code(exc)
    return (
        status is not None
        and 400 <= status < 500
        and status not in _RETRYABLE_CLIENT_STATUSES
    )


def _is_transient(exc: BaseException) -> bool:
    return not is_permanent_error(exc) and not is_malformed_output(exc)


class LLMClient:
    """Async JSON-mode completion client over an OpenAI-compatible endpoint.

    Parameters
    ----------
    settings:
        Provider configuration; defaults to the global ``config.llm``.
    completion_fn:
        Coroutine with the ``litellm.acompletion`` call signature. Tests pass a
        fake here; by default LiteLLM is imported lazily on first use.
    backoff:
        Base delay in seconds for exponential backoff between rounds.
    """

    def __init__(
        self,
        settings: LLMConfig | None = None,
        *,
        completion_fn: Callable[..., Awaitable[Any]] | None = None,
        backoff: float = 1.0,
        max_backoff: float = 30.0,
    ) -> None:
        self.settings = settings or config.llm
        self._completion_fn = completion_fn
        self.backoff = backoff
        self.max_backoff = max_backoff

    def _completion(self) -> Callable[..., Awaitable[Any]]:
        if self._completion_fn is None:
            import litellm

            self._completion_fn = litellm.acompletion
        return self._completion_fn

    def _route(self, model: str) -> str:
        provider = self.settings.provider
        if not provider or model.startswith(f"{provider}/"):
            return model
        return f"{provider}/{model}"

    async def _complete_once(
        self,
        model: str,
        messages: Sequence[dict[str, str]],
        response_model: type[T],
        *,
        temperature: float,
        max_tokens: int,
        user_id: str | None,
        timeout: float,
    ) -> CompletionResult[T]:
        start_time = time.time()
        kwargs: dict[str, Any] = {
            "model": self._route(model),
            "messages": list(messages),
            "api_base": self.settings.api_base,
            "api_key": self.settings.api_key,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": timeout,
            "response_format": {"type": "json_object"},
        }
        if user_id:
            kwargs["user"] = user_id

        response = await self._completion()(**kwargs)
        content = _message_content(response)
        parsed = parse_json_content(content)
        if not isinstance(parsed, dict):
            raise ResponseFormatError(
                f"Invalid response format: expected a JSON object, got {type(parsed).__name__}"
            )
        obj = response_model.model_validate(parsed)
        tokens = _total_tokens(response)

        event_logger.info(
            f"Received valid completion from {model}",
            event_type=EventType.LLM_REQUEST,
            component=__name__,
            user_id=user_id,
            processing_time_ms=(time.time() - start_time) * 1000,
            metadata={
                "model": model,
                "response_model": response_model.__name__,
                "response_length": len(content),
                "tokens": tokens,
            },
        )
        return CompletionResult(object=obj, model=model, tokens=tokens)

    async def _try_models(
        self,
        models: Sequence[str],
        call: Callable[[str], Awaitable[CompletionResult[T]]],
    ) -> CompletionResult[T]:
        last_error: BaseException | None = None
        for model in models:
            try:
                return await call(model)
            except Exception as exc:
                last_error = exc
                if is_permanent_error(exc):
                    event_logger.error(
                        f"Permanent provider error from {model}: {exc}",
                        event_type=EventType.LLM_REQUEST,
                        component=__name__,
                        metadata={"model": model, "status": _status_code(exc)},
                    )
                    raise
                event_logger.warning(
                    f"Model {model} failed, trying next model: {exc}",
                    event_type=EventType.LLM_REQUEST,
                    priority=Priority.NORMAL,
                    component=__name__,
                    metadata={"model": model, "error_type": type(exc).__name__},
                )
        if last_error is None:
            raise RuntimeError("No models configured for completion")
        raise last_error

    def _log_retry(self, max_attempts: int) -> Callable[[RetryCallState], None]:
        def before_sleep(state: RetryCallState) -> None:
            delay = state.next_action.sleep if state.next_action else 0.0
            event_logger.log_retry_attempt(
                state.attempt_number,
                max_attempts,
                delay * 1000,
                component=__name__,
            )

        return before_sleep

    async def json_completion(
        self,
        messages: Sequence[dict[str, str]],
        response_model: type[T],
        *,
        temperature: float = 0.2,
        max_tokens: int = 512,
        user_id: str | None = None,
        models: Sequence[str] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> CompletionResult[T]:
        """Request a JSON completion and validate it against ``response_model``.

        Models are tried in order. A provider 4xx aborts immediately, malformed
        output moves on to the next model, and transport failures restart the
        model list with exponential backoff up to ``retries`` more times.

        Returns
        -------
        CompletionResult
            The validated object, the model that produced it and token usage.

        Raises
        ------
        RuntimeError
            If ``OPENAI_API_BASE`` or ``OPENAI_API_KEY`` is not configured.
        CompletionParseError
            If the last model's output was not valid JSON.
        pydantic.ValidationError
            If the last model's output did not match ``response_model``.
        """
        if not self.settings.api_base or not self.settings.api_key:
            event_logger.error(
                "OPENAI_API_BASE and OPENAI_API_KEY must be set",
                component=__name__,
                metadata={"error_category": "configuration"},
            )
            raise RuntimeError("OPENAI_API_BASE and OPENAI_API_KEY must be set")

        model_list = list(models or self.settings.models)
        if not model_list:
            raise RuntimeError("No models configured for completion")
        effective_timeout = self.settings.timeout if timeout is None else timeout
        effective_retries = self.settings.retries if retries is None else retries
        max_attempts = effective_retries + 1

        event_logger.info(
            f"Starting JSON completion for {response_model.__name__}",
            event_type=EventType.LLM_REQUEST,
            component=__name__,
            user_id=user_id,
            metadata={
                "models": model_list,
                "message_count": len(messages),
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

        async def call(model: str) -> CompletionResult[T]:
            return await self._complete_once(
                model,
                messages,
                response_model,
                temperature=temperature,
                max_tokens=max_tokens,
                user_id=user_id,
                timeout=effective_timeout,
            )

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=self.max_backoff),
            retry=retry_if_exception(_is_transient),
            before_sleep=self._log_retry(max_attempts),
            reraise=True,
        ):
            with attempt:
                return await self._try_models(model_list, call)

        raise RuntimeError("Unreachable")  # pragma: no cover - safety


__all__ = [
    "CompletionResult",
    "LLMClient",
    "clean_json_text",
    "parse_json_content",
    "is_permanent_error",
]
