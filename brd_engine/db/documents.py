"""Database operations for documents."""

from datetime import UTC, datetime
from typing import Any

from brd_engine.core.errors import DocumentNotFoundError, StorageServiceError
from brd_engine.core.logging import get_logger
from brd_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


def create_document(
    project_id: str,
    user_id: str,
    filename: str,
    file_type: str,
    storage_path: str,
    file_size: int | None = None,
) -> dict[str, Any]:
    """Create an unprocessed document record.

    Args:
        project_id: Owning project UUID (must already be verified as owned by user_id)
        user_id: Owning user
        filename: Original filename
        file_type: Stored format tag (txt, pdf, docx, csv, xlsx, audio)
        storage_path: Blob storage path of the raw file
        file_size: Size in bytes

    Returns:
        Created document record
    """
    supabase = get_supabase()

    record = {
        "project_id": str(project_id),
        "user_id": str(user_id),
        "filename": filename,
        "file_type": file_type,
        "storage_path": storage_path,
        "file_size": file_size,
        "processed": False,
    }

    try:
        response = supabase.table("documents").insert(record).execute()
    except Exception as e:
        logger.error(f"Failed to create document record: {e}")
        raise StorageServiceError(f"Failed to create document record: {e}") from e

    if not response.data:
        raise StorageServiceError("Failed to create document record")

    doc = response.data[0]
    logger.info(
        f"Created document {doc['id']}: {filename}",
        extra={"document_id": doc["id"], "project_id": str(project_id)},
    )
    return doc


def get_document(document_id: str, user_id: str) -> dict[str, Any] | None:
    """Get a document by ID, scoped to its owner.

    Returns:
        Document record or None
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("documents")
            .select("*")
            .eq("id", str(document_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to get document {document_id}: {e}")
        raise StorageServiceError(f"Failed to get document: {e}") from e

    return response.data[0] if response.data else None


def require_document(document_id: str, user_id: str) -> dict[str, Any]:
    """Get a document or raise DocumentNotFoundError."""
    doc = get_document(document_id, user_id)
    if doc is None:
        raise DocumentNotFoundError(document_id)
    return doc


def list_documents(
    user_id: str,
    project_id: str | None = None,
    processed: bool | None = None,
) -> list[dict[str, Any]]:
    """List a user's documents, most recently uploaded first.

    Args:
        user_id: Owning user
        project_id: Optional project filter
        processed: Optional processed-flag filter

    Returns:
        Document records
    """
    supabase = get_supabase()

    query = supabase.table("documents").select("*").eq("user_id", str(user_id))

    if project_id:
        query = query.eq("project_id", str(project_id))
    if processed is not None:
        query = query.eq("processed", processed)

    try:
        response = query.order("uploaded_at", desc=True).execute()
    except Exception as e:
        logger.error(f"Failed to list documents: {e}")
        raise StorageServiceError(f"Failed to list documents: {e}") from e

    return response.data or []


def get_processed_documents(project_id: str, user_id: str) -> list[dict[str, Any]]:
    """Processed documents of a project owned by the user, newest first."""
    return list_documents(user_id=user_id, project_id=project_id, processed=True)


def update_document_status(
    document_id: str,
    processed: bool,
    error: str | None = None,
) -> None:
    """Record the outcome of a pipeline run.

    A successful run clears any previous error.
    """
    supabase = get_supabase()

    update_data: dict[str, Any] = {
        "processed": processed,
        "error": error,
        "processed_at": datetime.now(UTC).isoformat(),
    }

    try:
        supabase.table("documents").update(update_data).eq("id", str(document_id)).execute()
    except Exception as e:
        logger.error(f"Failed to update document status: {e}", extra={"document_id": document_id})
        raise StorageServiceError(f"Failed to update document status: {e}") from e

    logger.info(
        f"Document {document_id} processed={processed}",
        extra={"document_id": str(document_id), "processed": processed, "error": error},
    )


def reset_document_status(document_id: str) -> None:
    """Return a document to the unprocessed state without an error."""
    supabase = get_supabase()

    try:
        (
            supabase.table("documents")
            .update({"processed": False, "error": None, "processed_at": None})
            .eq("id", str(document_id))
            .execute()
        )
    except Exception as e:
        raise StorageServiceError(f"Failed to reset document status: {e}") from e


def delete_document(document_id: str, user_id: str) -> None:
    """Delete a document record. Chunks cascade at the database level."""
    supabase = get_supabase()

    try:
        (
            supabase.table("documents")
            .delete()
            .eq("id", str(document_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to delete document {document_id}: {e}")
        raise StorageServiceError(f"Failed to delete document: {e}") from e

    logger.info(f"Deleted document {document_id}", extra={"document_id": str(document_id)})


def count_documents(project_id: str, processed: bool | None = None) -> int:
    """Count documents of a project, optionally by processed flag."""
    supabase = get_supabase()

    query = supabase.table("documents").select("id", count="exact").eq("project_id", str(project_id))
    if processed is not None:
        query = query.eq("processed", processed)

    try:
        response = query.execute()
    except Exception as e:
        raise StorageServiceError(f"Failed to count documents: {e}") from e

    return response.count or 0
