"""Text extraction and chunking for uploaded documents.

Importing this package registers one extractor per FileType.
"""

from brd_engine.core.document_processing import (  # noqa: F401
    audio_extractor,
    docx_extractor,
    pdf_extractor,
    spreadsheet_extractor,
    text_extractor,
)
from brd_engine.core.document_processing.base import (
    CONTENT_TYPES,
    BaseExtractor,
    ExtractorRegistry,
    FileType,
    detect_file_type,
    extract_text,
    get_extractor,
    require_file_type,
)
from brd_engine.core.document_processing.chunker import chunk_text, estimate_token_count

__all__ = [
    "CONTENT_TYPES",
    "BaseExtractor",
    "ExtractorRegistry",
    "FileType",
    "chunk_text",
    "detect_file_type",
    "estimate_token_count",
    "extract_text",
    "get_extractor",
    "require_file_type",
]
