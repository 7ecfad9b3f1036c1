"""Base extractor interface and registry for document processing.

Defines the contract that all text extractors implement, plus a registry that
resolves the extractor for a `FileType`. The file type is resolved once from
the filename at upload time and stored on the document; dispatch afterwards
uses the stored tag.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from brd_engine.core.errors import (
    EmptyContentError,
    ExtractionError,
    UnsupportedFileTypeError,
)
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)


class FileType(str, Enum):
    """Supported document formats."""

    TXT = "txt"
    PDF = "pdf"
    DOCX = "docx"
    CSV = "csv"
    XLSX = "xlsx"
    AUDIO = "audio"


# File extension to FileType mapping
EXTENSION_MAP: dict[str, FileType] = {
    ".txt": FileType.TXT,
    ".pdf": FileType.PDF,
    ".docx": FileType.DOCX,
    ".doc": FileType.DOCX,
    ".csv": FileType.CSV,
    ".xlsx": FileType.XLSX,
    ".xls": FileType.XLSX,
    ".mp3": FileType.AUDIO,
    ".wav": FileType.AUDIO,
    ".m4a": FileType.AUDIO,
    ".ogg": FileType.AUDIO,
    ".webm": FileType.AUDIO,
}

# Content types recorded in blob storage
CONTENT_TYPES: dict[FileType, str] = {
    FileType.TXT: "text/plain",
    FileType.PDF: "application/pdf",
    FileType.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    FileType.CSV: "text/csv",
    FileType.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    FileType.AUDIO: "audio/mpeg",
}


def get_extension(filename: str) -> str:
    """Extract lowercase file extension (with dot) from filename."""
    if "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


def detect_file_type(filename: str) -> Optional[FileType]:
    """Detect file type from the filename extension.

    Args:
        filename: Original filename

    Returns:
        FileType or None if the extension is unknown
    """
    return EXTENSION_MAP.get(get_extension(filename))


def require_file_type(filename: str) -> FileType:
    """Resolve the file type or reject the upload.

    Raises:
        UnsupportedFileTypeError: If the extension is not supported
    """
    file_type = detect_file_type(filename)
    if file_type is None:
        raise UnsupportedFileTypeError(filename)
    return file_type


class BaseExtractor(ABC):
    """Base class for text extractors.

    Each FileType has exactly one extractor that turns raw bytes into a
    single plain-text string.
    """

    file_type: FileType

    @abstractmethod
    async def extract(self, file_bytes: bytes, filename: str) -> str:
        """Extract plain text from a document.

        Args:
            file_bytes: Raw file content
            filename: Original filename

        Returns:
            Extracted text (may be empty; emptiness is checked by the caller)

        Raises:
            ExtractionError: If the content is corrupt or unsupported
        """
        pass


class ExtractorRegistry:
    """Registry mapping each FileType to its extractor."""

    _extractors: dict[FileType, BaseExtractor] = {}

    @classmethod
    def register(cls, extractor: BaseExtractor) -> None:
        """Register an extractor for its file type."""
        cls._extractors[extractor.file_type] = extractor

    @classmethod
    def get_extractor(cls, file_type: FileType) -> Optional[BaseExtractor]:
        """Get the extractor for a file type, or None."""
        return cls._extractors.get(file_type)

    @classmethod
    def supported_types(cls) -> list[FileType]:
        return list(cls._extractors)


def get_extractor(file_type: FileType) -> Optional[BaseExtractor]:
    """Convenience function to get extractor from registry."""
    return ExtractorRegistry.get_extractor(file_type)


async def extract_text(file_bytes: bytes, file_type: FileType | str, filename: str) -> str:
    """Extract plain text from raw bytes using the extractor for `file_type`.

    Args:
        file_bytes: Raw file content
        file_type: Stored format tag
        filename: Original filename

    Returns:
        Non-empty extracted text

    Raises:
        ExtractionError: If no extractor exists or extraction fails
        EmptyContentError: If extraction produced only whitespace
        TranscriptionServiceError: If audio transcription fails
    """
    try:
        file_type = FileType(file_type)
    except ValueError:
        raise ExtractionError(f"Unsupported file type: {file_type}") from None

    extractor = get_extractor(file_type)
    if extractor is None:
        raise ExtractionError(f"No extractor registered for {file_type.value}")

    text = await extractor.extract(file_bytes, filename)

    if not text or not text.strip():
        raise EmptyContentError(filename)

    logger.info(
        f"Extracted {len(text)} chars from {filename}",
        extra={"extra_data": {"file_type": file_type.value, "chars": len(text)}},
    )
    return text
