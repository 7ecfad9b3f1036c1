"""DOCX text extractor using python-docx."""

from io import BytesIO

from brd_engine.core.document_processing.base import (
    BaseExtractor,
    ExtractorRegistry,
    FileType,
)
from brd_engine.core.errors import ExtractionError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)


class DOCXExtractor(BaseExtractor):
    """Word document extractor.

    Body paragraphs are joined with blank lines so the chunker sees the
    original paragraph boundaries. Tables follow the body as pipe-delimited
    rows, one table per block.
    """

    file_type = FileType.DOCX

    async def extract(self, file_bytes: bytes, filename: str) -> str:
        try:
            from docx import Document
        except ImportError:
            raise ExtractionError("python-docx not installed", extractor="docx")

        try:
            doc = Document(BytesIO(file_bytes))
        except Exception as e:
            logger.error(f"Failed to open DOCX {filename}: {e}")
            raise ExtractionError(f"Failed to process DOCX file: {e}", extractor="docx") from e

        parts: list[str] = [p.text.strip() for p in doc.paragraphs if p.text.strip()]

        for table in doc.tables:
            rows: list[str] = []
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                rows.append(" | ".join(cells))
            table_text = "\n".join(rows)
            if table_text.strip():
                parts.append(table_text)

        logger.info(
            f"Extracted {len(doc.paragraphs)} paragraphs, {len(doc.tables)} tables from {filename}"
        )

        return "\n\n".join(parts)


# Register extractor
ExtractorRegistry.register(DOCXExtractor())
