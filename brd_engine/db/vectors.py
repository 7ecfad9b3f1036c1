"""Database operations for document chunks and vector similarity search."""

from typing import Any

from brd_engine.core.errors import StorageServiceError
from brd_engine.core.logging import get_logger
from brd_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)

MATCH_FUNCTION = "match_document_chunks"


def insert_chunks(
    document_id: str,
    chunks: list[dict[str, Any]],
    embeddings: list[list[float]],
    metadata: dict[str, Any],
) -> list[dict[str, Any]]:
    """
    Insert document chunks with embeddings in a single write.

    Args:
        document_id: Owning document UUID
        chunks: List of chunk dicts with chunk_index, content
        embeddings: List of embedding vectors (same length as chunks)
        metadata: Metadata stored on every chunk (filename, file_type)

    Returns:
        List of inserted chunk rows

    Raises:
        ValueError: If chunks and embeddings length mismatch or a vector is empty
        StorageServiceError: If the database write fails
    """
    if len(chunks) != len(embeddings):
        raise ValueError(
            f"Chunks count ({len(chunks)}) must match embeddings count ({len(embeddings)})"
        )
    for chunk, embedding in zip(chunks, embeddings, strict=True):
        if not embedding:
            raise ValueError(f"Empty embedding for chunk {chunk['chunk_index']}")

    if not chunks:
        return []

    supabase = get_supabase()

    chunk_records = [
        {
            "document_id": str(document_id),
            "chunk_index": chunk["chunk_index"],
            "content": chunk["content"],
            "embedding": embedding,
            "metadata": metadata,
        }
        for chunk, embedding in zip(chunks, embeddings, strict=True)
    ]

    try:
        response = supabase.table("document_chunks").insert(chunk_records).execute()
    except Exception as e:
        logger.error(
            f"Failed to insert document chunks: {e}",
            extra={"document_id": str(document_id)},
        )
        raise StorageServiceError(f"Failed to insert chunks: {e}") from e

    if not response.data:
        raise StorageServiceError("No data returned from insert_chunks")

    logger.info(
        f"Inserted {len(response.data)} chunks for document {document_id}",
        extra={"document_id": str(document_id), "chunk_count": len(response.data)},
    )
    return response.data


def select_matches(
    rows: list[dict[str, Any]],
    match_count: int,
    match_threshold: float,
) -> list[dict[str, Any]]:
    """Keep rows at or above the threshold, best first, at most match_count."""
    kept = [row for row in rows if row.get("similarity", 0.0) >= match_threshold]
    kept.sort(key=lambda row: row["similarity"], reverse=True)
    return kept[:match_count]


def search_similar_chunks(
    query_embedding: list[float],
    match_count: int = 8,
    match_threshold: float = 0.7,
    project_id: str | None = None,
) -> list[dict[str, Any]]:
    """
    Search for chunks similar to a query embedding.

    Args:
        query_embedding: Query embedding vector
        match_count: Maximum number of results
        match_threshold: Minimum cosine similarity
        project_id: Optional project UUID to scope the search

    Returns:
        Matching chunk rows (id, document_id, chunk_index, content, metadata,
        similarity), similarity descending

    Raises:
        StorageServiceError: If the RPC call fails
    """
    supabase = get_supabase()

    try:
        response = supabase.rpc(
            MATCH_FUNCTION,
            {
                "query_embedding": query_embedding,
                "match_threshold": match_threshold,
                "match_count": match_count,
                "filter_project_id": str(project_id) if project_id else None,
            },
        ).execute()
    except Exception as e:
        logger.error(f"Failed to search document chunks: {e}")
        raise StorageServiceError(f"Vector search failed: {e}") from e

    matches = select_matches(response.data or [], match_count, match_threshold)

    if not matches:
        logger.info("No matching chunks found")
        return []

    logger.info(
        f"Found {len(matches)} matching chunks",
        extra={"match_count": match_count, "project_id": str(project_id) if project_id else None},
    )
    return matches


def get_chunks_by_document(document_id: str) -> list[dict[str, Any]]:
    """Get all chunks of a document ordered by chunk_index."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("document_chunks")
            .select("id, document_id, chunk_index, content, metadata")
            .eq("document_id", str(document_id))
            .order("chunk_index")
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to load chunks for document {document_id}: {e}")
        raise StorageServiceError(f"Failed to load chunks: {e}") from e

    return response.data or []


def delete_chunks_by_document(document_id: str) -> int:
    """Delete every chunk of a document. Deleting zero rows is not an error.

    Returns:
        Number of rows deleted
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("document_chunks").delete().eq("document_id", str(document_id)).execute()
        )
    except Exception as e:
        logger.error(f"Failed to delete chunks for document {document_id}: {e}")
        raise StorageServiceError(f"Failed to delete chunks: {e}") from e

    deleted = len(response.data or [])
    logger.info(
        f"Deleted {deleted} chunks for document {document_id}",
        extra={"document_id": str(document_id), "chunk_count": deleted},
    )
    return deleted


def count_chunks(document_ids: list[str] | None = None) -> int:
    """Count chunks, optionally restricted to a set of documents."""
    if document_ids is not None and not document_ids:
        return 0

    supabase = get_supabase()

    query = supabase.table("document_chunks").select("id", count="exact")
    if document_ids is not None:
        query = query.in_("document_id", [str(d) for d in document_ids])

    try:
        response = query.execute()
    except Exception as e:
        raise StorageServiceError(f"Failed to count chunks: {e}") from e

    return response.count or 0
