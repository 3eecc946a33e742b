# src/pollwise/analysis/service.py
"""Poll bias analysis orchestration.

``PollBiasAnalyzer`` asks the completion client for raw findings, validates
their shape and resolves them against the poll text. Malformed model output is
retried a bounded number of times; any other failure surfaces at once as a
:class:`GatewayError`.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from pollwise.config import PollAnalysisConfig, config
from pollwise.core.logs import EventType, get_event_logger, log_calls
from pollwise.models import AnalysisResult, RawAnalysisOutput
from pollwise.prompts import PromptManager

from .errors import (
    ErrorKind,
    GatewayError,
    InvalidInputError,
    classify_error,
)
from .prompts import build_poll_bias_prompt, poll_bias_prompt_messages
from .spans import resolve_analysis
from .validation import validate_analysis_output

event_logger = get_event_logger()


def _completion_payload(result: Any) -> Any:
    """Return the ``object`` member of a completion result or mapping."""
    if isinstance(result, Mapping):
        return result.get("object")
    return getattr(result, "object", None)


class CompletionClient(Protocol):
    """Structured completion capability used by the analyzer."""

    async def json_completion(
        self,
        messages: Sequence[dict[str, str]],
        response_model: type[RawAnalysisOutput],
        *,
        temperature: float,
        max_tokens: int,
        user_id: str | None,
        models: Sequence[str] | None,
    ) -> Any: ...


class PollBiasAnalyzer:
    """Analyze poll text for bias and grammar issues.

    Parameters
    ----------
    llm_client:
        Object exposing ``json_completion``; defaults to :class:`pollwise.core.llm.LLMClient`.
    prompt_manager:
        Managed prompt loader and tracer; defaults to :class:`PromptManager`.
    settings:
        Retry ceiling, sampling and model settings; defaults to ``config.analysis``.
    """

    def __init__(
        self,
        llm_client: CompletionClient | None = None,
        prompt_manager: PromptManager | None = None,
        settings: PollAnalysisConfig | None = None,
    ) -> None:
        if llm_client is None:
            from pollwise.core.llm import LLMClient

            llm_client = LLMClient()
        self.llm_client = llm_client
        self.prompt_manager = prompt_manager or PromptManager()
        self.settings = settings or config.analysis

    def build_messages(self, poll_text: str) -> list[dict[str, str]]:
        """Return the chat messages for ``poll_text``, managed prompt first."""
        if self.prompt_manager.enabled:
            return self.prompt_manager.load_prompt_messages(
                self.settings.prompt_key,
                poll_bias_prompt_messages(),
                {"pollText": poll_text},
            )
        return build_poll_bias_prompt(poll_text)

    async def _attempt(
        self,
        poll_text: str,
        messages: list[dict[str, str]],
        user_id: str | None,
    ) -> AnalysisResult:
        result = await self.llm_client.json_completion(
            messages,
            RawAnalysisOutput,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
            user_id=user_id,
            models=list(self.settings.models),
        )
        raw = validate_analysis_output(_completion_payload(result)).unwrap()
        return resolve_analysis(raw, poll_text)

    def _should_retry(self, exc: BaseException) -> bool:
        kind = classify_error(exc)
        event_logger.log_error_classification(
            type(exc).__name__, kind.value, component=__name__, error=str(exc)
        )
        return kind is ErrorKind.VALIDATION

    def _before_sleep(self, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        event_logger.log_retry_attempt(
            state.attempt_number,
            self.settings.max_attempts,
            delay * 1000,
            component=__name__,
            error=str(exc),
        )

    @log_calls
    async def analyze_text(
        self, poll_text: str, user_id: str | None = None
    ) -> AnalysisResult:
        """Return bias and grammar spans plus a neutral rewrite of ``poll_text``.

        Raises
        ------
        InvalidInputError
            If ``poll_text`` is empty or whitespace only.
        GatewayError
            If the completion client fails, or every attempt returned malformed
            output. In the latter case ``kind`` is ``RETRIES_EXHAUSTED``.
        """
        if not poll_text or not poll_text.strip():
            raise InvalidInputError("Poll text cannot be empty")

        start_time = time.time()
        max_attempts = self.settings.max_attempts
        messages = self.build_messages(poll_text)
        trace_input: Mapping[str, Any] = {"pollText": poll_text, "messages": messages}
        trace_metadata: Mapping[str, Any] = {"userId": user_id}

        event_logger.info(
            "Starting poll bias analysis",
            event_type=EventType.ANALYSIS_START,
            component=__name__,
            user_id=user_id,
            metadata={"text_length": len(poll_text), "max_attempts": max_attempts},
        )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_fixed(self.settings.retry_delay),
                retry=retry_if_exception(self._should_retry),
                before_sleep=self._before_sleep,
                reraise=True,
            ):
                with attempt:
                    result = await self.prompt_manager.traced(
                        self.settings.prompt_key,
                        lambda: self._attempt(poll_text, messages, user_id),
                        input=trace_input,
                        metadata=trace_metadata,
                    )
        except Exception as exc:
            if classify_error(exc) is ErrorKind.VALIDATION:
                event_logger.log_retry_exhausted(
                    max_attempts, component=__name__, user_id=user_id, error=str(exc)
                )
                raise GatewayError(
                    "Failed to analyze poll text for bias",
                    kind=ErrorKind.RETRIES_EXHAUSTED,
                ) from exc
            event_logger.error(
                "Error analyzing poll text for bias",
                component=__name__,
                user_id=user_id,
                metadata={"error": str(exc), "error_type": type(exc).__name__},
            )
            raise GatewayError("Failed to analyze poll text for bias") from exc

        event_logger.info(
            "Completed poll bias analysis",
            event_type=EventType.ANALYSIS_COMPLETE,
            component=__name__,
            user_id=user_id,
            processing_time_ms=(time.time() - start_time) * 1000,
            metadata={
                "bias_spans": len(result.bias_spans),
                "grammar_spans": len(result.grammar_spans),
            },
        )
        return result


_default_analyzer: PollBiasAnalyzer | None = None


def get_analyzer() -> PollBiasAnalyzer:
    """Return the process-wide analyzer, building it on first use."""
    global _default_analyzer
    if _default_analyzer is None:
        _default_analyzer = PollBiasAnalyzer()
    return _default_analyzer


async def analyze_poll_text(poll_text: str, user_id: str | None = None) -> AnalysisResult:
    """Analyze ``poll_text`` with the default analyzer."""
    return await get_analyzer().analyze_text(poll_text, user_id)


__all__ = [
    "CompletionClient",
    "PollBiasAnalyzer",
    "get_analyzer",
    "analyze_poll_text",
]
