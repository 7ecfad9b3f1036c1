"""Retrieval-augmented context assembly for chat answers.

Embeds a question, runs a scoped similarity search and renders the matches
into a single context string, with per-document source attribution.
"""

from pydantic import BaseModel, Field

from brd_engine.core.config import get_settings
from brd_engine.core.embeddings import embed_text
from brd_engine.core.errors import BrdEngineError
from brd_engine.core.logging import get_logger
from brd_engine.db.vectors import search_similar_chunks

logger = get_logger(__name__)

NO_CONTEXT_MESSAGE = "No relevant information found in the knowledge base."
NO_CONTEXT_AVAILABLE_MESSAGE = "No context available from the knowledge base."

CONTEXT_SEPARATOR = "\n---\n\n"


class Source(BaseModel):
    """Chunks of one document that contributed to an answer."""

    document_id: str
    filename: str
    chunk_ids: list[str] = Field(default_factory=list)


class RAGContext(BaseModel):
    context: str
    sources: list[Source] = Field(default_factory=list)


def _chunk_filename(chunk: dict) -> str:
    return (chunk.get("metadata") or {}).get("filename") or "Unknown"


def format_context(chunks: list[dict]) -> RAGContext:
    """Render ranked chunks into a context string plus grouped sources.

    Chunk order is preserved; sources are grouped by document in the order
    each document first appears.
    """
    if not chunks:
        return RAGContext(context=NO_CONTEXT_MESSAGE, sources=[])

    parts = []
    sources: dict[str, Source] = {}

    for chunk in chunks:
        filename = _chunk_filename(chunk)
        parts.append(f"[From: {filename}]\n{chunk['content']}\n")

        document_id = str(chunk["document_id"])
        if document_id not in sources:
            sources[document_id] = Source(document_id=document_id, filename=filename)
        sources[document_id].chunk_ids.append(str(chunk["id"]))

    return RAGContext(context=CONTEXT_SEPARATOR.join(parts), sources=list(sources.values()))


def retrieve_context(
    query: str,
    project_id: str | None = None,
    top_k: int | None = None,
    threshold: float | None = None,
) -> RAGContext:
    """
    Retrieve knowledge-base context for a question.

    Args:
        query: User question
        project_id: Project scope for the search
        top_k: Maximum chunks (default RAG_TOP_K)
        threshold: Minimum similarity (default RAG_MATCH_THRESHOLD)

    Returns:
        RAGContext; the sentinel message and no sources when nothing matches

    Raises:
        EmbeddingServiceError: If the query cannot be embedded
        StorageServiceError: If the search fails
    """
    settings = get_settings()
    top_k = top_k if top_k is not None else settings.RAG_TOP_K
    threshold = threshold if threshold is not None else settings.RAG_MATCH_THRESHOLD

    query_embedding = embed_text(query)
    chunks = search_similar_chunks(
        query_embedding,
        match_count=top_k,
        match_threshold=threshold,
        project_id=project_id,
    )

    result = format_context(chunks)
    logger.info(
        f"Retrieved {len(chunks)} chunks from {len(result.sources)} documents",
        extra={"project_id": project_id, "chunk_count": len(chunks)},
    )
    return result


def retrieve_context_safe(
    query: str,
    project_id: str | None = None,
    top_k: int | None = None,
    threshold: float | None = None,
) -> RAGContext:
    """Like retrieve_context, but a retrieval failure yields an empty context."""
    try:
        return retrieve_context(query, project_id=project_id, top_k=top_k, threshold=threshold)
    except BrdEngineError as e:
        logger.warning(f"Context retrieval failed: {e}", extra={"project_id": project_id})
    except Exception:
        logger.exception("Unexpected error during context retrieval")
    return RAGContext(context=NO_CONTEXT_AVAILABLE_MESSAGE, sources=[])
