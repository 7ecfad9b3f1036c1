"""Document processing pipeline: extract, chunk, embed and index one document.

Each run ends with a definite outcome recorded on the document: either
`processed=true` with its chunks indexed, or `processed=false` with the error
message and no chunks left behind.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from brd_engine.core.document_processing import chunk_text, extract_text
from brd_engine.core.embeddings import embed_texts_async
from brd_engine.core.errors import BrdEngineError, DocumentAlreadyProcessedError
from brd_engine.core.logging import get_logger, log_with_context
from brd_engine.db import documents as documents_db
from brd_engine.db import storage, vectors

logger = get_logger(__name__)


@dataclass
class ProcessingResult:
    """Outcome of one pipeline run for one document."""

    document_id: str
    success: bool
    chunk_count: int = 0
    error: str | None = None
    exception: Exception | None = field(default=None, repr=False)


async def _cleanup_failed_run(document_id: str, error: Exception) -> None:
    try:
        await asyncio.to_thread(vectors.delete_chunks_by_document, document_id)
    except BrdEngineError as cleanup_error:
        logger.error(f"Failed to remove partial chunks for {document_id}: {cleanup_error}")

    try:
        await asyncio.to_thread(documents_db.update_document_status, document_id, False, str(error))
    except BrdEngineError as status_error:
        logger.error(f"Failed to record error on document {document_id}: {status_error}")


async def run_pipeline(document: dict[str, Any]) -> ProcessingResult:
    """Run extract → chunk → embed → index for a loaded document record."""
    document_id = str(document["id"])
    filename = document["filename"]

    try:
        file_bytes = await asyncio.to_thread(storage.download_file, document["storage_path"])
        text = await extract_text(file_bytes, document["file_type"], filename)

        chunks = chunk_text(text)
        embeddings = await embed_texts_async([c["content"] for c in chunks])

        await asyncio.to_thread(
            vectors.insert_chunks,
            document_id,
            chunks,
            embeddings,
            {"filename": filename, "file_type": document["file_type"]},
        )
        await asyncio.to_thread(documents_db.update_document_status, document_id, True, None)

    except BrdEngineError as e:
        logger.warning(f"Processing failed for {filename}: {e}", extra={"document_id": document_id})
        await _cleanup_failed_run(document_id, e)
        return ProcessingResult(document_id=document_id, success=False, error=str(e), exception=e)

    except Exception as e:
        logger.exception(f"Unexpected error processing {filename}")
        await _cleanup_failed_run(document_id, e)
        return ProcessingResult(document_id=document_id, success=False, error=str(e), exception=e)

    log_with_context(
        logger,
        logging.INFO,
        f"Processed {filename}",
        document_id=document_id,
        project_id=document.get("project_id"),
        chunk_count=len(chunks),
    )
    return ProcessingResult(document_id=document_id, success=True, chunk_count=len(chunks))


async def process_document(document_id: str, user_id: str) -> ProcessingResult:
    """
    Process a document that has not been processed yet.

    Raises:
        DocumentNotFoundError: If the document does not exist for this user
        DocumentAlreadyProcessedError: If the document already has chunks indexed
    """
    document = await asyncio.to_thread(documents_db.require_document, document_id, user_id)

    if document.get("processed"):
        raise DocumentAlreadyProcessedError(document_id)

    return await run_pipeline(document)


async def reprocess_document(document_id: str, user_id: str) -> ProcessingResult:
    """Discard a document's chunks and status, then process it from scratch.

    Raises:
        DocumentNotFoundError: If the document does not exist for this user
    """
    document = await asyncio.to_thread(documents_db.require_document, document_id, user_id)

    await asyncio.to_thread(vectors.delete_chunks_by_document, document_id)
    await asyncio.to_thread(documents_db.reset_document_status, document_id)

    document = {**document, "processed": False, "error": None}
    return await run_pipeline(document)
