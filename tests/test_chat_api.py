"""Tests for chat assistant API endpoints.

Covers the chat and conversation endpoints via FastAPI TestClient with mocked
Supabase access and a fake Anthropic stream.
"""

import json
from typing import List
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from brd_engine.core.errors import ConversationNotFoundError, ProjectNotFoundError
from brd_engine.core.rag import NO_CONTEXT_AVAILABLE_MESSAGE, RAGContext, Source
from brd_engine.main import app

PROJECT_ID = str(uuid4())
CONV_ID = str(uuid4())
USER_ID = "user-1"
HEADERS = {"X-User-Id": USER_ID}

client = TestClient(app)


# ──────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────


def parse_sse_events(text: str) -> List[dict]:
    """Parse SSE response body into a list of event dicts."""
    events = []
    for line in text.strip().split("\n"):
        line = line.strip()
        if line.startswith("data: "):
            events.append(json.loads(line[6:]))
    return events


def _fake_stream(fragments):
    async def _stream(messages, system_prompt, model, max_tokens):
        for fragment in fragments:
            yield fragment

    return _stream


@pytest.fixture
def chat_mocks():
    """Mock project lookup, conversation storage and retrieval."""
    with (
        patch("brd_engine.db.projects.require_project") as require_project,
        patch("brd_engine.db.conversations.create_conversation") as create_conversation,
        patch("brd_engine.db.conversations.require_conversation") as require_conversation,
        patch("brd_engine.db.conversations.create_message") as create_message,
        patch("brd_engine.db.conversations.get_messages") as get_messages,
        patch("brd_engine.api.chat.retrieve_context_safe") as retrieve,
    ):
        require_project.return_value = {"id": PROJECT_ID, "name": "Acme"}
        create_conversation.return_value = {"id": CONV_ID, "project_id": PROJECT_ID}
        require_conversation.return_value = {"id": CONV_ID, "project_id": PROJECT_ID}
        create_message.return_value = {"id": str(uuid4())}
        get_messages.return_value = [{"role": "user", "content": "What is the budget?"}]
        retrieve.return_value = RAGContext(
            context="[From: kickoff.txt]\nBudget is 50k\n",
            sources=[Source(document_id="d1", filename="kickoff.txt", chunk_ids=["c1"])],
        )
        yield {
            "require_project": require_project,
            "create_conversation": create_conversation,
            "require_conversation": require_conversation,
            "create_message": create_message,
            "get_messages": get_messages,
            "retrieve": retrieve,
        }


# ──────────────────────────────────────────────────────────────────────
# POST /v1/chat
# ──────────────────────────────────────────────────────────────────────


class TestChatEndpoint:
    def test_new_conversation_streams_answer(self, chat_mocks):
        with patch("brd_engine.core.llm.stream_completion", _fake_stream(["Budget ", "is 50k."])):
            response = client.post(
                "/v1/chat",
                json={"message": "What is the budget?", "project_id": PROJECT_ID},
                headers=HEADERS,
            )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["x-conversation-id"] == CONV_ID

        events = parse_sse_events(response.text)
        assert [e["type"] for e in events] == ["conversation_id", "sources", "text", "text", "done"]
        assert events[1]["sources"][0]["filename"] == "kickoff.txt"

        chat_mocks["create_conversation"].assert_called_once_with(
            user_id=USER_ID, project_id=PROJECT_ID, title="What is the budget?"
        )
        calls = chat_mocks["create_message"].call_args_list
        assert calls[0].args == (CONV_ID, "user", "What is the budget?")
        assert calls[1].args[:3] == (CONV_ID, "assistant", "Budget is 50k.")
        chat_mocks["retrieve"].assert_called_once_with("What is the budget?", PROJECT_ID)
        chat_mocks["get_messages"].assert_called_once_with(CONV_ID, limit=20)

    def test_existing_conversation_is_reused(self, chat_mocks):
        with patch("brd_engine.core.llm.stream_completion", _fake_stream(["ok"])):
            response = client.post(
                "/v1/chat",
                json={"message": "Follow-up", "project_id": PROJECT_ID, "conversation_id": CONV_ID},
                headers=HEADERS,
            )

        assert response.status_code == 200
        chat_mocks["require_conversation"].assert_called_once_with(CONV_ID, USER_ID)
        chat_mocks["create_conversation"].assert_not_called()

    def test_conversation_from_another_project_is_not_found(self, chat_mocks):
        chat_mocks["require_conversation"].return_value = {
            "id": CONV_ID,
            "project_id": str(uuid4()),
        }

        response = client.post(
            "/v1/chat",
            json={"message": "Follow-up", "project_id": PROJECT_ID, "conversation_id": CONV_ID},
            headers=HEADERS,
        )

        assert response.status_code == 404
        assert "Conversation not found" in response.json()["detail"]
        chat_mocks["create_message"].assert_not_called()
        chat_mocks["retrieve"].assert_not_called()

    def test_malformed_conversation_id_rejected(self, chat_mocks):
        response = client.post(
            "/v1/chat",
            json={"message": "Hi", "project_id": PROJECT_ID, "conversation_id": "conv-1"},
            headers=HEADERS,
        )

        assert response.status_code == 422
        chat_mocks["require_project"].assert_not_called()

    def test_long_message_truncates_title(self, chat_mocks):
        message = "x" * 250
        with patch("brd_engine.core.llm.stream_completion", _fake_stream(["ok"])):
            client.post("/v1/chat", json={"message": message, "project_id": PROJECT_ID}, headers=HEADERS)

        assert chat_mocks["create_conversation"].call_args.kwargs["title"] == "x" * 100

    def test_retrieval_failure_still_answers(self, chat_mocks):
        chat_mocks["retrieve"].return_value = RAGContext(context=NO_CONTEXT_AVAILABLE_MESSAGE)
        stream = MagicMock(side_effect=_fake_stream(["I could not find that."]))

        with patch("brd_engine.core.llm.stream_completion", stream):
            response = client.post(
                "/v1/chat",
                json={"message": "Anything?", "project_id": PROJECT_ID},
                headers=HEADERS,
            )

        events = parse_sse_events(response.text)
        assert events[1]["sources"] == []
        assert events[-1]["type"] == "done"
        assert NO_CONTEXT_AVAILABLE_MESSAGE in stream.call_args.kwargs["system_prompt"]

    def test_empty_message_rejected(self, chat_mocks):
        response = client.post(
            "/v1/chat", json={"message": "   ", "project_id": PROJECT_ID}, headers=HEADERS
        )

        assert response.status_code == 400
        assert "message" in response.json()["detail"]
        chat_mocks["create_message"].assert_not_called()

    def test_unknown_project(self, chat_mocks):
        chat_mocks["require_project"].side_effect = ProjectNotFoundError(PROJECT_ID)

        response = client.post(
            "/v1/chat", json={"message": "Hi", "project_id": PROJECT_ID}, headers=HEADERS
        )

        assert response.status_code == 404

    def test_unknown_conversation(self, chat_mocks):
        chat_mocks["require_conversation"].side_effect = ConversationNotFoundError(CONV_ID)

        response = client.post(
            "/v1/chat",
            json={"message": "Hi", "project_id": PROJECT_ID, "conversation_id": CONV_ID},
            headers=HEADERS,
        )

        assert response.status_code == 404

    def test_missing_anthropic_key(self, chat_mocks):
        with patch("brd_engine.api.chat.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(ANTHROPIC_API_KEY=None)
            response = client.post(
                "/v1/chat", json={"message": "Hi", "project_id": PROJECT_ID}, headers=HEADERS
            )

        assert response.status_code == 500
        assert "ANTHROPIC_API_KEY" in response.json()["detail"]

    def test_requires_user(self):
        response = client.post("/v1/chat", json={"message": "Hi", "project_id": PROJECT_ID})
        assert response.status_code == 401


# ──────────────────────────────────────────────────────────────────────
# Conversations
# ──────────────────────────────────────────────────────────────────────


class TestConversationEndpoints:
    @patch("brd_engine.db.conversations.list_conversations")
    def test_list_conversations(self, mock_list):
        mock_list.return_value = [{"id": CONV_ID, "project_id": PROJECT_ID, "title": "Budget"}]

        response = client.get(f"/v1/conversations?project_id={PROJECT_ID}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["total"] == 1
        mock_list.assert_called_once_with(USER_ID, project_id=PROJECT_ID)

    @patch("brd_engine.db.conversations.get_messages")
    @patch("brd_engine.db.conversations.require_conversation")
    def test_list_messages(self, mock_require, mock_messages):
        mock_require.return_value = {"id": CONV_ID}
        mock_messages.return_value = [
            {"id": "m1", "conversation_id": CONV_ID, "role": "user", "content": "Hi"},
            {
                "id": "m2",
                "conversation_id": CONV_ID,
                "role": "assistant",
                "content": "Hello",
                "sources": [{"document_id": "d1", "filename": "a.txt", "chunk_ids": ["c1"]}],
            },
        ]

        response = client.get(f"/v1/conversations/{CONV_ID}/messages", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert [m["role"] for m in data["messages"]] == ["user", "assistant"]
        assert data["messages"][1]["sources"][0]["filename"] == "a.txt"

    @patch("brd_engine.db.conversations.require_conversation")
    def test_messages_of_foreign_conversation(self, mock_require):
        mock_require.side_effect = ConversationNotFoundError(CONV_ID)

        response = client.get(f"/v1/conversations/{CONV_ID}/messages", headers=HEADERS)

        assert response.status_code == 404

    @patch("brd_engine.db.conversations.delete_conversation")
    def test_delete_conversation(self, mock_delete):
        response = client.delete(f"/v1/conversations/{CONV_ID}", headers=HEADERS)

        assert response.status_code == 200
        mock_delete.assert_called_once_with(CONV_ID, USER_ID)
