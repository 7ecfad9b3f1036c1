"""Chat assistant API endpoints."""

import asyncio
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from brd_engine.api.deps import get_user_id, to_http_exception
from brd_engine.core.chat_stream import ChatStreamConfig, generate_chat_stream
from brd_engine.core.config import get_settings
from brd_engine.core.errors import BrdEngineError, ConversationNotFoundError, MissingFieldError
from brd_engine.core.logging import get_logger
from brd_engine.core.rag import retrieve_context_safe
from brd_engine.core.schemas_chat import (
    ChatRequest,
    ConversationListResponse,
    ConversationResponse,
    MessageListResponse,
    MessageResponse,
)
from brd_engine.db import conversations as conversations_db
from brd_engine.db import projects as projects_db

logger = get_logger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/chat")
async def chat_with_assistant(
    request: ChatRequest,
    user_id: str = Depends(get_user_id),
) -> StreamingResponse:
    """
    Ask a question against a project's knowledge base, streaming the answer.

    This endpoint:
    1. Creates or fetches the conversation
    2. Persists the user message
    3. Retrieves RAG context (a retrieval failure degrades to no context)
    4. Streams the answer as Server-Sent Events
    5. Persists the assistant message when the stream ends

    Returns:
        StreamingResponse with Server-Sent Events
    """
    settings = get_settings()

    if not settings.ANTHROPIC_API_KEY:
        raise HTTPException(
            status_code=500,
            detail="Anthropic API key not configured. Please set ANTHROPIC_API_KEY in environment.",
        )

    project_id = str(request.project_id)

    try:
        if not request.message.strip():
            raise MissingFieldError("message")

        projects_db.require_project(project_id, user_id)

        if request.conversation_id:
            conversation = conversations_db.require_conversation(
                str(request.conversation_id), user_id
            )
            # A conversation only continues within the project it was started in
            if str(conversation.get("project_id")) != project_id:
                raise ConversationNotFoundError(str(request.conversation_id))
        else:
            conversation = conversations_db.create_conversation(
                user_id=user_id,
                project_id=project_id,
                title=request.message[:100],
            )
        conversation_id = str(conversation["id"])

        conversations_db.create_message(conversation_id, "user", request.message)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    rag_context = await asyncio.to_thread(retrieve_context_safe, request.message, project_id)

    try:
        history = conversations_db.get_messages(conversation_id, limit=settings.CHAT_HISTORY_LIMIT)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    config = ChatStreamConfig(
        project_id=project_id,
        conversation_id=conversation_id,
        message=request.message,
        conversation_history=history,
        rag_context=rag_context,
        chat_model=settings.CHAT_MODEL,
        chat_max_tokens=settings.CHAT_MAX_TOKENS,
        history_limit=settings.CHAT_HISTORY_LIMIT,
    )

    return StreamingResponse(
        generate_chat_stream(config),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Conversation-Id": conversation_id},
    )


@router.get("/conversations")
async def list_conversations(
    project_id: UUID | None = Query(default=None),
    user_id: str = Depends(get_user_id),
) -> ConversationListResponse:
    conversations = conversations_db.list_conversations(
        user_id, project_id=str(project_id) if project_id else None
    )
    return ConversationListResponse(
        conversations=[ConversationResponse(**c) for c in conversations],
        total=len(conversations),
    )


@router.get("/conversations/{conversation_id}/messages")
async def list_messages(
    conversation_id: UUID,
    user_id: str = Depends(get_user_id),
) -> MessageListResponse:
    """Messages of a conversation, oldest first."""
    try:
        conversations_db.require_conversation(str(conversation_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    messages = conversations_db.get_messages(str(conversation_id))
    return MessageListResponse(
        messages=[MessageResponse(**m) for m in messages],
        total=len(messages),
    )


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: UUID,
    user_id: str = Depends(get_user_id),
) -> dict:
    try:
        conversations_db.delete_conversation(str(conversation_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return {"success": True}
