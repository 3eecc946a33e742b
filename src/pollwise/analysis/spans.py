# src/pollwise/analysis/spans.py
"""Locate model-quoted substrings in the original poll text.

The model is asked to quote findings verbatim but cannot be trusted to report
offsets, to keep whitespace intact, or to avoid overlapping findings. This
module turns quotes into half-open ``[start, end)`` spans over the *original*
text and guarantees that accepted spans are in bounds and mutually disjoint.

Resolution is first-fit and order dependent: earlier findings claim text
before later ones, and bias findings are resolved before grammar findings so
that bias wins any contested range. Unlocatable findings are dropped with a
warning event; nothing here raises.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from pollwise.core.logs import EventType, get_event_logger
from pollwise.models import AnalysisResult, RawAnalysisOutput, RawFinding, ResolvedSpan

_WHITESPACE_RE = re.compile(r"\s+")
_PREVIEW_CHARS = 200


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces and trim both ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def _fold(text: str) -> str:
    # Per-character lowercase that never changes string length, so offsets into
    # the folded text are offsets into the unfolded one.
    return "".join(c if len(c.lower()) != 1 else c.lower() for c in text)


def _same_char(a: str, b: str) -> bool:
    return a == b or _fold(a) == _fold(b)


def find_actual_index_and_length(
    original_text: str,
    normalized_substring: str,
    normalized_index: int,
) -> tuple[int, int] | None:
    """Map a match in the normalized text back onto ``original_text``.

    Returns ``(start, length)`` in original-text coordinates, or ``None`` when the
    characters at the mapped position do not spell ``normalized_substring`` under
    the whitespace-collapsing rule.
    """
    length = len(original_text)
    pos = 0
    # The normalized text is trimmed, so leading whitespace has no position.
    while pos < length and original_text[pos].isspace():
        pos += 1

    normalized_pos = 0
    while normalized_pos < normalized_index and pos < length:
        if original_text[pos].isspace():
            while pos < length and original_text[pos].isspace():
                pos += 1
        else:
            pos += 1
        normalized_pos += 1

    if normalized_pos != normalized_index:
        return None
    if not normalized_substring:
        return pos, 0

    match_pos = pos
    for char in normalized_substring:
        if char == " ":
            while match_pos < length and original_text[match_pos].isspace():
                match_pos += 1
            continue
        if match_pos >= length or not _same_char(original_text[match_pos], char):
            return None
        match_pos += 1

    return pos, match_pos - pos


def find_normalized_match(substring: str, original_text: str) -> tuple[int, int] | None:
    """Whitespace- and case-tolerant search for ``substring``.

    Only the first normalized occurrence is considered.
    """
    normalized_substring = normalize_whitespace(substring)
    if not normalized_substring:
        return None
    normalized_index = _fold(normalize_whitespace(original_text)).find(
        _fold(normalized_substring)
    )
    if normalized_index == -1:
        return None
    return find_actual_index_and_length(
        original_text, normalized_substring, normalized_index
    )


def validate_span_bounds(start: int, end: int, text_length: int) -> bool:
    """Return True if ``[start, end)`` is a non-empty range inside the text."""
    return 0 <= start < end <= text_length


def has_overlap(start: int, end: int, spans: Iterable[ResolvedSpan]) -> bool:
    """Return True if ``[start, end)`` overlaps any of ``spans``."""
    return any(span.overlaps(start, end) for span in spans)


def _preview(text: str) -> str:
    return text[:_PREVIEW_CHARS]


def _drop(message: str, finding: RawFinding, original_text: str, **metadata) -> None:
    get_event_logger().warning(
        message,
        event_type=EventType.SPAN_DROPPED,
        component=__name__,
        metadata={
            "substring": finding.substring,
            "reason": finding.reason,
            "text_length": len(original_text),
            "text_preview": _preview(original_text),
            **metadata,
        },
    )


def resolve_span(
    finding: RawFinding,
    original_text: str,
    used_spans: Sequence[ResolvedSpan],
) -> ResolvedSpan | None:
    """Locate a single finding, or return ``None`` if it cannot be placed.

    Exact occurrences are tried left to right, skipping any that collide with
    ``used_spans``. Only when the quote does not occur verbatim at all is the
    whitespace-tolerant search used, and then only its first match counts.
    """
    substring = finding.substring.strip()
    if not substring:
        _drop("Empty span substring provided", finding, original_text)
        return None

    text_length = len(original_text)
    index = original_text.find(substring)
    if index != -1:
        while index != -1:
            start, end = index, index + len(substring)
            if validate_span_bounds(start, end, text_length) and not has_overlap(
                start, end, used_spans
            ):
                return ResolvedSpan(
                    start=start,
                    end=end,
                    reason=finding.reason,
                    suggestion=finding.suggestion,
                )
            index = original_text.find(substring, index + 1)
        _drop(
            f'All occurrences of "{substring}" overlap existing spans',
            finding,
            original_text,
        )
        return None

    located = find_normalized_match(substring, original_text)
    if located is None:
        _drop(
            f'Could not find span substring "{substring}" in original text',
            finding,
            original_text,
        )
        return None

    start, length = located
    end = start + length
    if not validate_span_bounds(start, end, text_length):
        _drop(
            f"Span [{start}, {end}) is out of bounds for text of length {text_length}",
            finding,
            original_text,
            start=start,
            end=end,
        )
        return None
    if has_overlap(start, end, used_spans):
        _drop(
            f'Skipping overlapping span for substring "{substring}"',
            finding,
            original_text,
            start=start,
            end=end,
        )
        return None

    return ResolvedSpan(
        start=start, end=end, reason=finding.reason, suggestion=finding.suggestion
    )


def resolve_spans(
    findings: Sequence[RawFinding],
    original_text: str,
    already_used_spans: Sequence[ResolvedSpan] = (),
) -> list[ResolvedSpan]:
    """Resolve ``findings`` in order and return the accepted spans sorted by start.

    ``already_used_spans`` are spans committed by an earlier call; none of the
    returned spans overlaps them or each other.
    """
    used: list[ResolvedSpan] = list(already_used_spans)
    result: list[ResolvedSpan] = []
    for finding in findings:
        span = resolve_span(finding, original_text, used)
        if span is not None:
            result.append(span)
            used.append(span)
    return sorted(result, key=lambda span: span.start)


def resolve_analysis(raw: RawAnalysisOutput, original_text: str) -> AnalysisResult:
    """Resolve bias findings, then grammar findings seeded with the bias spans."""
    bias_spans = resolve_spans(raw.bias_findings, original_text)
    grammar_spans = resolve_spans(raw.grammar_findings, original_text, bias_spans)
    return AnalysisResult(
        bias_spans=bias_spans,
        grammar_spans=grammar_spans,
        rewritten_text=raw.rewritten_text,
    )


__all__ = [
    "normalize_whitespace",
    "find_actual_index_and_length",
    "find_normalized_match",
    "validate_span_bounds",
    "has_overlap",
    "resolve_span",
    "resolve_spans",
    "resolve_analysis",
]
