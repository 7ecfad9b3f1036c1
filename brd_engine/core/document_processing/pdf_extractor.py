"""PDF text extractor.

Uses PyMuPDF (fitz) for native text extraction. Scanned pages without a text
layer contribute nothing; a PDF that is entirely scanned ends up empty and is
rejected by the caller as having no usable text.
"""

import io

from brd_engine.core.document_processing.base import (
    BaseExtractor,
    ExtractorRegistry,
    FileType,
)
from brd_engine.core.errors import ExtractionError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)

# Lazy import to avoid loading heavy libraries at module load
fitz = None


def _get_fitz():
    """Lazy load PyMuPDF."""
    global fitz
    if fitz is None:
        try:
            import fitz as _fitz

            fitz = _fitz
        except ImportError:
            raise ExtractionError(
                "PyMuPDF (fitz) is required for PDF extraction. "
                "Install with: pip install pymupdf",
                extractor="pdf",
            )
    return fitz


class PDFExtractor(BaseExtractor):
    """PDF document extractor."""

    file_type = FileType.PDF

    async def extract(self, file_bytes: bytes, filename: str) -> str:
        """Extract text from every page, pages separated by blank lines."""
        fitz_lib = _get_fitz()

        try:
            doc = fitz_lib.open(stream=io.BytesIO(file_bytes), filetype="pdf")
        except Exception as e:
            logger.error(f"Failed to open PDF {filename}: {e}")
            raise ExtractionError(f"Failed to process PDF file: {e}", extractor="pdf") from e

        try:
            page_texts: list[str] = []
            empty_pages = 0

            for page in doc:
                text = page.get_text("text")
                if text.strip():
                    page_texts.append(text.strip())
                else:
                    empty_pages += 1

            if empty_pages:
                logger.warning(
                    f"PDF {filename}: {empty_pages} page(s) without a text layer",
                    extra={"empty_pages": empty_pages},
                )

            logger.info(f"Extracted PDF {filename}: {len(doc)} pages")
            return "\n\n".join(page_texts)

        except Exception as e:
            logger.error(f"PDF extraction failed for {filename}: {e}")
            raise ExtractionError(f"Failed to process PDF file: {e}", extractor="pdf") from e
        finally:
            doc.close()


# Register the extractor
ExtractorRegistry.register(PDFExtractor())
