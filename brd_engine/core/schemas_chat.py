"""Pydantic schemas for chat conversations."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request to ask a question against a project's knowledge base."""

    message: str = Field(..., description="User question")
    project_id: UUID = Field(..., description="Project UUID")
    conversation_id: UUID | None = Field(None, description="Existing conversation (new if omitted)")


class ConversationResponse(BaseModel):
    id: str
    project_id: str | None = None
    title: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ConversationListResponse(BaseModel):
    conversations: list[ConversationResponse]
    total: int


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    role: str
    content: str
    sources: list[dict[str, Any]] = Field(default_factory=list)
    created_at: str | None = None


class MessageListResponse(BaseModel):
    messages: list[MessageResponse]
    total: int
