"""Whole-project corpus aggregation for BRD generation."""

from brd_engine.core.config import get_settings
from brd_engine.core.errors import NoDocumentsError
from brd_engine.core.logging import get_logger
from brd_engine.db.documents import get_processed_documents
from brd_engine.db.vectors import get_chunks_by_document

logger = get_logger(__name__)

TRUNCATION_MARKER = "\n\n... [content truncated for length] ...\n\n"


def document_header(filename: str, sampled: bool = False) -> str:
    label = f"{filename} (sampled)" if sampled else filename
    return f"\n\n=== Document: {label} ===\n\n"


def rebuild_document_text(chunks: list[dict]) -> str:
    """Join chunk contents in index order."""
    ordered = sorted(chunks, key=lambda c: c["chunk_index"])
    return "\n\n".join(chunk["content"] for chunk in ordered)


def sample_content(content: str, max_chars: int) -> str:
    """Keep an even prefix and suffix of `content` around the truncation marker.

    The result never exceeds `max_chars`; content that already fits is
    returned unchanged.
    """
    if len(content) <= max_chars:
        return content

    part_size = max(0, (max_chars - len(TRUNCATION_MARKER)) // 2)
    prefix = content[:part_size]
    suffix = content[len(content) - part_size :]
    return f"{prefix}{TRUNCATION_MARKER}{suffix}"


def aggregate_documents_content(
    project_id: str,
    user_id: str,
    max_chars: int | None = None,
) -> str:
    """
    Concatenate the text of every processed document in a project.

    Documents are taken most recently uploaded first. The first document whose
    full section would overflow the budget is sampled to fill what remains,
    and nothing is appended after it.

    Args:
        project_id: Project UUID
        user_id: Owning user
        max_chars: Character budget (default BRD_MAX_CONTENT_TOKENS * CHARS_PER_TOKEN)

    Returns:
        Aggregated text, at most max_chars long

    Raises:
        NoDocumentsError: If the project has no processed documents
    """
    if max_chars is None:
        max_chars = get_settings().brd_max_content_chars

    documents = get_processed_documents(project_id, user_id)
    if not documents:
        raise NoDocumentsError()

    total = ""
    included = 0
    sampled_filename = None

    for doc in documents:
        content = rebuild_document_text(get_chunks_by_document(doc["id"]))
        section = document_header(doc["filename"]) + content

        if len(total) + len(section) <= max_chars:
            total += section
            included += 1
            continue

        header = document_header(doc["filename"], sampled=True)
        available = max_chars - len(total) - len(header)
        if available >= len(TRUNCATION_MARKER):
            total += header + sample_content(content, available)
            sampled_filename = doc["filename"]
            included += 1
        break

    logger.info(
        f"Aggregated {included} of {len(documents)} documents ({len(total)} chars)",
        extra={
            "project_id": str(project_id),
            "document_count": len(documents),
            "sampled": sampled_filename,
        },
    )
    return total.strip()
