"""Database operations for chat conversations and messages."""

from typing import Any

from brd_engine.core.errors import ConversationNotFoundError, StorageServiceError
from brd_engine.core.logging import get_logger
from brd_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


def create_conversation(
    user_id: str,
    project_id: str,
    title: str | None = None,
) -> dict[str, Any]:
    """Create a conversation in a project."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("conversations")
            .insert({"user_id": str(user_id), "project_id": str(project_id), "title": title})
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to create conversation: {e}")
        raise StorageServiceError(f"Failed to create conversation: {e}") from e

    if not response.data:
        raise StorageServiceError("Failed to create conversation")
    return response.data[0]


def get_conversation(conversation_id: str, user_id: str) -> dict[str, Any] | None:
    """Get a conversation by ID, scoped to its owner."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("conversations")
            .select("*")
            .eq("id", str(conversation_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to get conversation {conversation_id}: {e}")
        raise StorageServiceError(f"Failed to get conversation: {e}") from e

    return response.data[0] if response.data else None


def require_conversation(conversation_id: str, user_id: str) -> dict[str, Any]:
    conversation = get_conversation(conversation_id, user_id)
    if conversation is None:
        raise ConversationNotFoundError(conversation_id)
    return conversation


def list_conversations(user_id: str, project_id: str | None = None) -> list[dict[str, Any]]:
    """List a user's conversations, most recently updated first."""
    supabase = get_supabase()

    query = supabase.table("conversations").select("*").eq("user_id", str(user_id))
    if project_id:
        query = query.eq("project_id", str(project_id))

    try:
        response = query.order("updated_at", desc=True).execute()
    except Exception as e:
        logger.error(f"Failed to list conversations: {e}")
        raise StorageServiceError(f"Failed to list conversations: {e}") from e

    return response.data or []


def delete_conversation(conversation_id: str, user_id: str) -> None:
    """Delete an owned conversation; messages cascade."""
    require_conversation(conversation_id, user_id)

    supabase = get_supabase()

    try:
        (
            supabase.table("conversations")
            .delete()
            .eq("id", str(conversation_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to delete conversation {conversation_id}: {e}")
        raise StorageServiceError(f"Failed to delete conversation: {e}") from e


def create_message(
    conversation_id: str,
    role: str,
    content: str,
    sources: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Append a message to a conversation."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("messages")
            .insert(
                {
                    "conversation_id": str(conversation_id),
                    "role": role,
                    "content": content,
                    "sources": sources or [],
                }
            )
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to create message: {e}")
        raise StorageServiceError(f"Failed to create message: {e}") from e

    if not response.data:
        raise StorageServiceError("Failed to create message")
    return response.data[0]


def get_messages(conversation_id: str, limit: int | None = None) -> list[dict[str, Any]]:
    """Messages of a conversation in chronological order.

    With `limit`, only the most recent `limit` messages are returned (still
    oldest first).
    """
    supabase = get_supabase()

    query = (
        supabase.table("messages")
        .select("*")
        .eq("conversation_id", str(conversation_id))
    )

    try:
        if limit is None:
            return query.order("created_at").execute().data or []
        response = query.order("created_at", desc=True).limit(limit).execute()
    except Exception as e:
        logger.error(f"Failed to load messages for {conversation_id}: {e}")
        raise StorageServiceError(f"Failed to load messages: {e}") from e

    return list(reversed(response.data or []))
