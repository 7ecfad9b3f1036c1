"""Spreadsheet extractors for CSV and XLSX workbooks.

Each sheet is flattened to comma-delimited rows under a
``=== Sheet: <name> ===`` header; sheets are concatenated in workbook order.
"""

import csv
import io
from collections.abc import Iterable
from typing import Any

from brd_engine.core.document_processing.base import (
    BaseExtractor,
    ExtractorRegistry,
    FileType,
)
from brd_engine.core.document_processing.text_extractor import decode_bytes
from brd_engine.core.errors import ExtractionError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)

CSV_SHEET_NAME = "Sheet1"


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def rows_to_csv(rows: Iterable[Iterable[Any]]) -> str:
    """Serialize rows to CSV text, skipping rows with no values."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        cells = [_format_cell(v) for v in row]
        if any(c.strip() for c in cells):
            writer.writerow(cells)
    return buffer.getvalue().rstrip("\n")


def format_sheets(sheets: list[tuple[str, str]]) -> str:
    """Join (sheet_name, csv_text) pairs into one text block."""
    text = ""
    for name, sheet_text in sheets:
        text += f"\n\n=== Sheet: {name} ===\n{sheet_text}"
    return text.strip()


class CSVExtractor(BaseExtractor):
    """A CSV file is treated as a single-sheet workbook."""

    file_type = FileType.CSV

    async def extract(self, file_bytes: bytes, filename: str) -> str:
        text, _encoding = decode_bytes(file_bytes)
        try:
            rows = list(csv.reader(io.StringIO(text)))
        except csv.Error as e:
            raise ExtractionError(f"Failed to process CSV file: {e}", extractor="csv") from e
        return format_sheets([(CSV_SHEET_NAME, rows_to_csv(rows))])


class XLSXExtractor(BaseExtractor):
    """Excel workbook extractor using openpyxl."""

    file_type = FileType.XLSX

    async def extract(self, file_bytes: bytes, filename: str) -> str:
        try:
            from openpyxl import load_workbook
        except ImportError:
            raise ExtractionError("openpyxl not installed", extractor="xlsx")

        try:
            workbook = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
        except Exception as e:
            logger.error(f"Failed to open workbook {filename}: {e}")
            raise ExtractionError(f"Failed to process XLSX file: {e}", extractor="xlsx") from e

        try:
            sheets = [
                (worksheet.title, rows_to_csv(worksheet.iter_rows(values_only=True)))
                for worksheet in workbook.worksheets
            ]
        finally:
            workbook.close()

        logger.info(f"Extracted {len(sheets)} sheets from {filename}")
        return format_sheets(sheets)


ExtractorRegistry.register(CSVExtractor())
ExtractorRegistry.register(XLSXExtractor())
