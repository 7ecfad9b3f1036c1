"""Chat streaming engine: RAG-grounded Anthropic streaming over SSE."""

import json
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field
from typing import Any

from brd_engine.core import llm
from brd_engine.core.errors import BrdEngineError
from brd_engine.core.logging import get_logger
from brd_engine.core.rag import RAGContext
from brd_engine.db import conversations as conversations_db

logger = get_logger(__name__)

SYSTEM_PROMPT_TEMPLATE = """You are a helpful assistant with access to a knowledge base of documents.
Answer questions based on the provided context. If the answer isn't in the context, say so clearly.
Always cite which documents you're referencing when providing information.

Context from knowledge base:
{context}"""


@dataclass
class ChatStreamConfig:
    """Explicit inputs for a chat streaming session."""

    project_id: str
    conversation_id: str
    message: str
    conversation_history: list[dict[str, Any]]
    rag_context: RAGContext
    chat_model: str = "claude-3-5-haiku-20241022"
    chat_max_tokens: int = 4096
    history_limit: int = 20


def _sse_event(data: dict) -> str:
    """Format a dict as an SSE data line."""
    return f"data: {json.dumps(data)}\n\n"


class MessageSink:
    """Collects streamed fragments and persists the assistant message once.

    `flush()` is safe to call from every exit path: only the first call
    writes, and nothing is written when no content was produced.
    """

    def __init__(
        self,
        conversation_id: str,
        sources: list[dict[str, Any]],
        persist: Callable[..., dict[str, Any]] | None = None,
    ):
        self.conversation_id = conversation_id
        self.sources = sources
        self._persist = persist or conversations_db.create_message
        self._parts: list[str] = []
        self._flushed = False

    @property
    def content(self) -> str:
        return "".join(self._parts)

    @property
    def flushed(self) -> bool:
        return self._flushed

    def write(self, fragment: str) -> str:
        """Accumulate a fragment and return it as an SSE text event."""
        self._parts.append(fragment)
        return _sse_event({"type": "text", "content": fragment})

    def flush(self) -> dict[str, Any] | None:
        """Persist the accumulated answer with its sources (first call only)."""
        if self._flushed:
            return None
        self._flushed = True

        content = self.content
        if not content.strip():
            logger.info(f"No assistant content to persist for {self.conversation_id}")
            return None

        try:
            message = self._persist(self.conversation_id, "assistant", content, self.sources)
        except BrdEngineError as e:
            logger.error(
                f"Failed to persist assistant message: {e}",
                extra={"conversation_id": self.conversation_id},
            )
            return None

        logger.info(
            f"Persisted assistant message ({len(content)} chars)",
            extra={"conversation_id": self.conversation_id},
        )
        return message


def build_system_prompt(context: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(context=context)


def build_messages(config: ChatStreamConfig) -> list[dict[str, str]]:
    """Recent history as Anthropic messages, ending with the current question.

    History rows with empty content are skipped, and the list always starts
    with a user turn.
    """
    messages = [
        {"role": row["role"], "content": row["content"]}
        for row in config.conversation_history[-config.history_limit :]
        if row.get("content", "").strip() and row.get("role") in ("user", "assistant")
    ]

    while messages and messages[0]["role"] != "user":
        messages.pop(0)

    if not messages or messages[-1] != {"role": "user", "content": config.message}:
        messages.append({"role": "user", "content": config.message})

    return messages


async def generate_chat_stream(
    config: ChatStreamConfig,
    sink: MessageSink | None = None,
) -> AsyncGenerator[str, None]:
    """Generate streaming chat responses.

    Yields SSE events: conversation_id → sources → text* → done/error. The
    assistant message is persisted when the stream ends, fails, or the client
    disconnects.
    """
    sources = [source.model_dump() for source in config.rag_context.sources]
    sink = sink or MessageSink(config.conversation_id, sources)

    try:
        yield _sse_event({"type": "conversation_id", "conversation_id": config.conversation_id})
        yield _sse_event({"type": "sources", "sources": sources})

        async for fragment in llm.stream_completion(
            messages=build_messages(config),
            system_prompt=build_system_prompt(config.rag_context.context),
            model=config.chat_model,
            max_tokens=config.chat_max_tokens,
        ):
            yield sink.write(fragment)

        sink.flush()
        yield _sse_event({"type": "done"})

    except BrdEngineError as e:
        logger.error(f"Chat generation failed: {e}", extra={"conversation_id": config.conversation_id})
        sink.flush()
        yield _sse_event({"type": "error", "message": str(e)})

    except Exception as e:
        logger.error(f"Error in chat stream: {e}", exc_info=True)
        sink.flush()
        yield _sse_event({"type": "error", "message": str(e)})

    finally:
        # Client disconnects close the generator without reaching the handlers above
        sink.flush()
