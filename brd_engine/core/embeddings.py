"""OpenAI embeddings generation with validation."""

import asyncio

from openai import OpenAI

from brd_engine.core.config import get_settings
from brd_engine.core.errors import EmbeddingServiceError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)

# OpenAI accepts at most 2048 inputs per request
MAX_BATCH_SIZE = 2048


def _get_client() -> OpenAI:
    """Get OpenAI client instance."""
    settings = get_settings()
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def _embed_batch(client: OpenAI, texts: list[str], model: str, dim: int) -> list[list[float]]:
    try:
        response = client.embeddings.create(model=model, input=texts)
    except Exception as e:
        logger.error(f"Failed to generate embeddings: {e}")
        raise EmbeddingServiceError(f"Embedding request failed: {e}") from e

    if len(response.data) != len(texts):
        raise EmbeddingServiceError(
            f"Embedding count mismatch: sent {len(texts)} texts, got {len(response.data)} vectors"
        )

    # The API may return items out of order; `index` ties each back to its input
    ordered = sorted(response.data, key=lambda item: item.index)

    embeddings = []
    for i, embedding_obj in enumerate(ordered):
        embedding = embedding_obj.embedding
        if len(embedding) != dim:
            raise EmbeddingServiceError(
                f"Embedding dimension mismatch for text {i}: expected {dim}, got {len(embedding)}"
            )
        embeddings.append(embedding)

    return embeddings


def embed_texts(texts: list[str]) -> list[list[float]]:
    """
    Generate embeddings for a list of texts using OpenAI.

    Output order matches input order. Inputs are sent in a single request
    unless they exceed the provider's per-request maximum.

    Args:
        texts: List of text strings to embed

    Returns:
        List of embedding vectors (each vector is list of floats)

    Raises:
        EmbeddingServiceError: If the API call fails or returns malformed vectors
    """
    if not texts:
        return []

    settings = get_settings()
    client = _get_client()

    embeddings: list[list[float]] = []
    for start in range(0, len(texts), MAX_BATCH_SIZE):
        batch = texts[start : start + MAX_BATCH_SIZE]
        embeddings.extend(
            _embed_batch(client, batch, settings.EMBEDDING_MODEL, settings.EMBEDDING_DIM)
        )

    logger.info(
        f"Generated {len(embeddings)} embeddings using {settings.EMBEDDING_MODEL}",
        extra={"model": settings.EMBEDDING_MODEL, "count": len(embeddings)},
    )

    return embeddings


def embed_text(text: str) -> list[float]:
    """Embed a single text (e.g. a search query)."""
    return embed_texts([text])[0]


async def embed_texts_async(texts: list[str]) -> list[list[float]]:
    """Async wrapper around embed_texts using thread pool."""
    return await asyncio.to_thread(embed_texts, texts)
