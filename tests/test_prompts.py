# tests/test_prompts.py
from __future__ import annotations

import importlib

import pytest

from pollwise.config import PromptConfig
from pollwise.core.logs import EventType, get_event_logger
from pollwise.prompts import PromptManager, is_valid_chat_role

FALLBACK = [
    {"role": "system", "content": "Built-in instructions."},
    {"role": "user", "content": 'Text: """{{ pollText }}"""'},
]


def manager_for(path, tracing: bool = True) -> PromptManager:
    return PromptManager(PromptConfig(template_dir=str(path), tracing=tracing))


def test_chat_roles():
    assert is_valid_chat_role("system")
    assert is_valid_chat_role("assistant")
    assert not is_valid_chat_role("tool")


def test_manager_module_imports():
    module = importlib.import_module("pollwise.prompts.manager")

    assert module.PromptManager is PromptManager
    assert module.__doc__


def test_unconfigured_directory_reads_no_template():
    manager = PromptManager(PromptConfig(template_dir="", tracing=True))

    assert manager.template_dir is None
    assert manager._read_template("poll") is None
    messages = manager.load_prompt_messages("poll", FALLBACK, {"pollText": "Raise taxes?"})
    assert messages[1]["content"] == 'Text: """Raise taxes?"""'


def test_disabled_manager_renders_fallback(tmp_path):
    manager = manager_for(tmp_path / "missing")

    assert not manager.enabled
    messages = manager.load_prompt_messages("poll", FALLBACK, {"pollText": "Raise taxes?"})

    assert messages[0] == FALLBACK[0]
    assert messages[1]["content"] == 'Text: """Raise taxes?"""'


def test_loads_message_list_template(tmp_path):
    (tmp_path / "poll.yaml").write_text(
        "- role: system\n"
        "  content: Managed instructions.\n"
        "- role: tool\n"
        "  content: dropped\n"
        "- role: user\n"
        "  content:\n"
        "    - text: 'Poll: '\n"
        "    - text: '{{ pollText }}'\n",
        encoding="utf-8",
    )
    manager = manager_for(tmp_path)

    messages = manager.load_prompt_messages("poll", FALLBACK, {"pollText": "Raise taxes?"})

    assert messages == [
        {"role": "system", "content": "Managed instructions."},
        {"role": "user", "content": "Poll: Raise taxes?"},
    ]
    loads = get_event_logger().get_events(event_type=EventType.PROMPT_LOAD)
    assert loads[-1].metadata["prompt_key"] == "poll"


def test_template_without_valid_messages_falls_back(tmp_path):
    (tmp_path / "poll.yaml").write_text(
        "messages:\n  - role: tool\n    content: nope\n", encoding="utf-8"
    )
    manager = manager_for(tmp_path)

    messages = manager.load_prompt_messages("poll", FALLBACK, {"pollText": "x"})

    assert messages[0]["content"] == "Built-in instructions."


@pytest.mark.parametrize(
    "body",
    [
        "messages: [unclosed\n",
        "messages:\n  - role: user\n    content: '{{ missingVariable }}'\n",
        "messages:\n  - role: user\n    content: '{% if %}'\n",
    ],
)
def test_broken_template_falls_back(tmp_path, body):
    (tmp_path / "poll.yaml").write_text(body, encoding="utf-8")
    manager = manager_for(tmp_path)

    messages = manager.load_prompt_messages("poll", FALLBACK, {"pollText": "x"})

    assert messages[1]["content"] == 'Text: """x"""'
    warnings = get_event_logger().get_events(event_type=EventType.PROMPT_LOAD)
    assert warnings and "using fallback" in warnings[-1].message


def test_variable_values_are_not_rendered(tmp_path):
    manager = manager_for(tmp_path / "missing")

    messages = manager.load_prompt_messages("poll", FALLBACK, {"pollText": "{{ 7 * 7 }}"})

    assert messages[1]["content"] == 'Text: """{{ 7 * 7 }}"""'


@pytest.mark.asyncio
async def test_traced_records_success(tmp_path):
    manager = manager_for(tmp_path)

    async def call():
        return {"answer": 42}

    result = await manager.traced("trace-name", call, input={"q": 1}, metadata={"userId": "u"})

    assert result == {"answer": 42}
    (event,) = get_event_logger().get_events(event_type=EventType.LLM_REQUEST)
    assert event.metadata["trace"] == "trace-name"
    assert event.metadata["output"] == {"answer": 42}
    assert event.metadata["input"] == {"q": 1}
    assert event.user_id == "u"


@pytest.mark.asyncio
async def test_traced_reraises_original_exception(tmp_path):
    manager = manager_for(tmp_path)
    error = ValueError("Failed to parse")

    async def call():
        raise error

    with pytest.raises(ValueError) as exc_info:
        await manager.traced("trace-name", call)

    assert exc_info.value is error
    (event,) = get_event_logger().get_events(event_type=EventType.LLM_REQUEST)
    assert event.metadata["success"] is False
    assert event.metadata["output"]["error"] == "Failed to parse"


@pytest.mark.asyncio
async def test_tracing_disabled_records_nothing(tmp_path):
    manager = manager_for(tmp_path, tracing=False)

    async def call():
        return "ok"

    assert await manager.traced("trace-name", call) == "ok"
    assert get_event_logger().get_events(event_type=EventType.LLM_REQUEST) == []
