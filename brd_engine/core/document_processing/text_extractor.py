"""Plain-text passthrough extractor."""

from brd_engine.core.document_processing.base import (
    BaseExtractor,
    ExtractorRegistry,
    FileType,
)
from brd_engine.core.errors import ExtractionError


def decode_bytes(raw_bytes: bytes) -> tuple[str, str]:
    """
    Attempt to decode bytes using fallback chain.

    Returns:
        Tuple of (decoded_text, encoding_name)

    Raises:
        ExtractionError: If no encoding works
    """
    # Check for UTF-8 BOM first
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        try:
            return raw_bytes.decode("utf-8-sig"), "utf-8-sig"
        except UnicodeDecodeError:
            pass

    for encoding in ("utf-8", "latin-1"):
        try:
            return raw_bytes.decode(encoding), encoding
        except UnicodeDecodeError:
            continue

    raise ExtractionError(
        "Unable to decode file content. Supported encodings: UTF-8, UTF-8-BOM, Latin-1.",
        extractor="txt",
    )


class TextExtractor(BaseExtractor):
    """Returns the decoded file content verbatim."""

    file_type = FileType.TXT

    async def extract(self, file_bytes: bytes, filename: str) -> str:
        text, _encoding = decode_bytes(file_bytes)
        return text


ExtractorRegistry.register(TextExtractor())
