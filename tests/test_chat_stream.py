"""Tests for the SSE chat streaming engine."""

import json
from unittest.mock import MagicMock, patch

import pytest

from brd_engine.core.chat_stream import (
    ChatStreamConfig,
    MessageSink,
    build_messages,
    build_system_prompt,
    generate_chat_stream,
)
from brd_engine.core.errors import GenerationServiceError, StorageServiceError
from brd_engine.core.rag import RAGContext, Source


def _events(chunks: list[str]) -> list[dict]:
    return [json.loads(chunk.removeprefix("data: ").strip()) for chunk in chunks]


def _config(**overrides) -> ChatStreamConfig:
    values = {
        "project_id": "p1",
        "conversation_id": "conv-1",
        "message": "What is the budget?",
        "conversation_history": [{"role": "user", "content": "What is the budget?"}],
        "rag_context": RAGContext(
            context="[From: kickoff.txt]\nBudget is 50k\n",
            sources=[Source(document_id="d1", filename="kickoff.txt", chunk_ids=["c1"])],
        ),
    }
    values.update(overrides)
    return ChatStreamConfig(**values)


def _fake_stream(fragments, error=None):
    async def _stream(messages, system_prompt, model, max_tokens):
        for fragment in fragments:
            yield fragment
        if error:
            raise error

    return _stream


class TestMessageSink:
    def test_flush_persists_once(self):
        persist = MagicMock(return_value={"id": "m1"})
        sink = MessageSink("conv-1", [{"document_id": "d1"}], persist=persist)
        sink.write("Hello ")
        sink.write("world")

        assert sink.flush() == {"id": "m1"}
        assert sink.flush() is None
        persist.assert_called_once_with("conv-1", "assistant", "Hello world", [{"document_id": "d1"}])
        assert sink.flushed

    def test_empty_content_is_not_persisted(self):
        persist = MagicMock()
        sink = MessageSink("conv-1", [], persist=persist)

        assert sink.flush() is None
        persist.assert_not_called()

    def test_write_returns_text_event(self):
        sink = MessageSink("conv-1", [], persist=MagicMock())

        event = sink.write("Hi")

        assert _events([event]) == [{"type": "text", "content": "Hi"}]

    def test_persist_failure_is_logged_not_raised(self):
        persist = MagicMock(side_effect=StorageServiceError("insert failed"))
        sink = MessageSink("conv-1", [], persist=persist)
        sink.write("answer")

        assert sink.flush() is None


class TestBuildMessages:
    def test_current_message_not_duplicated(self):
        config = _config(
            conversation_history=[
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello"},
                {"role": "user", "content": "What is the budget?"},
            ]
        )

        messages = build_messages(config)

        assert messages[-1] == {"role": "user", "content": "What is the budget?"}
        assert len(messages) == 3

    def test_history_starts_with_user_and_skips_empty(self):
        config = _config(
            conversation_history=[
                {"role": "assistant", "content": "orphan"},
                {"role": "user", "content": "   "},
                {"role": "user", "content": "First"},
                {"role": "assistant", "content": ""},
            ]
        )

        messages = build_messages(config)

        assert messages == [
            {"role": "user", "content": "First"},
            {"role": "user", "content": "What is the budget?"},
        ]

    def test_history_limited(self):
        history = [{"role": "user", "content": f"q{i}"} for i in range(30)]

        messages = build_messages(_config(conversation_history=history, history_limit=5))

        assert [m["content"] for m in messages[:5]] == ["q25", "q26", "q27", "q28", "q29"]


def test_system_prompt_embeds_context():
    prompt = build_system_prompt("[From: a.txt]\nBudget")

    assert prompt.endswith("Context from knowledge base:\n[From: a.txt]\nBudget")
    assert "cite which documents" in prompt


@pytest.mark.asyncio
async def test_event_order_and_persisted_answer():
    persist = MagicMock(return_value={"id": "m1"})
    config = _config()

    with patch("brd_engine.core.llm.stream_completion", _fake_stream(["The budget ", "is 50k."])):
        chunks = [c async for c in generate_chat_stream(config, MessageSink("conv-1", [], persist))]

    events = _events(chunks)
    assert [e["type"] for e in events] == ["conversation_id", "sources", "text", "text", "done"]
    assert events[0]["conversation_id"] == "conv-1"
    assert "".join(e["content"] for e in events if e["type"] == "text") == "The budget is 50k."
    persist.assert_called_once()
    assert persist.call_args[0][2] == "The budget is 50k."


@pytest.mark.asyncio
async def test_sources_event_carries_rag_sources():
    config = _config()

    with patch("brd_engine.core.llm.stream_completion", _fake_stream(["ok"])):
        with patch("brd_engine.core.chat_stream.conversations_db.create_message") as persist:
            chunks = [c async for c in generate_chat_stream(config)]

    sources = _events(chunks)[1]["sources"]
    assert sources == [{"document_id": "d1", "filename": "kickoff.txt", "chunk_ids": ["c1"]}]
    assert persist.call_args[0][3] == sources


@pytest.mark.asyncio
async def test_generation_error_yields_error_event_and_keeps_partial_answer():
    persist = MagicMock(return_value={"id": "m1"})

    with patch(
        "brd_engine.core.llm.stream_completion",
        _fake_stream(["Partial"], error=GenerationServiceError("overloaded")),
    ):
        chunks = [
            c async for c in generate_chat_stream(_config(), MessageSink("conv-1", [], persist))
        ]

    events = _events(chunks)
    assert events[-1] == {"type": "error", "message": "overloaded"}
    assert "done" not in [e["type"] for e in events]
    persist.assert_called_once_with("conv-1", "assistant", "Partial", [])


@pytest.mark.asyncio
async def test_client_disconnect_still_persists():
    persist = MagicMock(return_value={"id": "m1"})
    sink = MessageSink("conv-1", [], persist)

    with patch("brd_engine.core.llm.stream_completion", _fake_stream(["one ", "two ", "three"])):
        stream = generate_chat_stream(_config(), sink)
        await stream.__anext__()  # conversation_id
        await stream.__anext__()  # sources
        await stream.__anext__()  # first text
        await stream.aclose()

    persist.assert_called_once_with("conv-1", "assistant", "one ", [])
