"""Database operations for projects and their saved BRDs."""

from datetime import UTC, datetime
from typing import Any

from brd_engine.core.errors import ProjectNotFoundError, StorageServiceError
from brd_engine.core.logging import get_logger
from brd_engine.db import documents as documents_db
from brd_engine.db import vectors
from brd_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


def create_project(user_id: str, name: str, description: str | None = None) -> dict[str, Any]:
    """Create a project owned by user_id."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("projects")
            .insert({"user_id": str(user_id), "name": name, "description": description})
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to create project: {e}")
        raise StorageServiceError(f"Failed to create project: {e}") from e

    if not response.data:
        raise StorageServiceError("Failed to create project")

    project = response.data[0]
    logger.info(f"Created project {project['id']}: {name}", extra={"project_id": project["id"]})
    return project


def list_projects(user_id: str) -> list[dict[str, Any]]:
    """List a user's projects, most recently updated first."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("projects")
            .select("*")
            .eq("user_id", str(user_id))
            .order("updated_at", desc=True)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to list projects: {e}")
        raise StorageServiceError(f"Failed to list projects: {e}") from e

    return response.data or []


def get_project(project_id: str, user_id: str) -> dict[str, Any] | None:
    """Get a project by ID if user_id owns it."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("projects")
            .select("*")
            .eq("id", str(project_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to get project {project_id}: {e}")
        raise StorageServiceError(f"Failed to get project: {e}") from e

    return response.data[0] if response.data else None


def require_project(project_id: str, user_id: str) -> dict[str, Any]:
    """Get an owned project or raise ProjectNotFoundError."""
    project = get_project(project_id, user_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


def update_project(project_id: str, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    """Apply name/description updates to an owned project.

    Raises:
        ProjectNotFoundError: If the project does not exist for this user
    """
    allowed = {k: v for k, v in updates.items() if k in ("name", "description")}
    allowed["updated_at"] = datetime.now(UTC).isoformat()

    supabase = get_supabase()

    try:
        response = (
            supabase.table("projects")
            .update(allowed)
            .eq("id", str(project_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to update project {project_id}: {e}")
        raise StorageServiceError(f"Failed to update project: {e}") from e

    if not response.data:
        raise ProjectNotFoundError(project_id)
    return response.data[0]


def delete_project(project_id: str, user_id: str) -> None:
    """Delete an owned project. Documents, chunks and conversations cascade."""
    require_project(project_id, user_id)

    supabase = get_supabase()

    try:
        (
            supabase.table("projects")
            .delete()
            .eq("id", str(project_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to delete project {project_id}: {e}")
        raise StorageServiceError(f"Failed to delete project: {e}") from e

    logger.info(f"Deleted project {project_id}", extra={"project_id": str(project_id)})


def get_project_stats(project_id: str) -> dict[str, int]:
    """Document, chunk, conversation and BRD counts for a project."""
    supabase = get_supabase()

    try:
        conversations = (
            supabase.table("conversations")
            .select("id", count="exact")
            .eq("project_id", str(project_id))
            .execute()
        )
        brds = (
            supabase.table("brds")
            .select("id", count="exact")
            .eq("project_id", str(project_id))
            .execute()
        )
        documents = (
            supabase.table("documents").select("id").eq("project_id", str(project_id)).execute()
        )
    except Exception as e:
        logger.error(f"Failed to load stats for project {project_id}: {e}")
        raise StorageServiceError(f"Failed to load project stats: {e}") from e

    document_ids = [row["id"] for row in documents.data or []]

    return {
        "total_documents": documents_db.count_documents(project_id),
        "processed_documents": documents_db.count_documents(project_id, processed=True),
        "total_chunks": vectors.count_chunks(document_ids),
        "conversations": conversations.count or 0,
        "brds": brds.count or 0,
    }


# BRDs


def save_brd(project_id: str, title: str, content: str, markdown_content: str) -> dict[str, Any]:
    """Persist a generated BRD."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("brds")
            .insert(
                {
                    "project_id": str(project_id),
                    "title": title,
                    "content": content,
                    "markdown_content": markdown_content,
                }
            )
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to save BRD: {e}")
        raise StorageServiceError(f"Failed to save BRD: {e}") from e

    if not response.data:
        raise StorageServiceError("Failed to save BRD")

    brd = response.data[0]
    logger.info(f"Saved BRD {brd['id']}", extra={"project_id": str(project_id)})
    return brd


def list_brds(project_id: str) -> list[dict[str, Any]]:
    """Saved BRDs of a project, newest first."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("brds")
            .select("*")
            .eq("project_id", str(project_id))
            .order("created_at", desc=True)
            .execute()
        )
    except Exception as e:
        raise StorageServiceError(f"Failed to list BRDs: {e}") from e

    return response.data or []
