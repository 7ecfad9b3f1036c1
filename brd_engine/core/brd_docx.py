"""Render BRD markdown to a Word document with python-docx."""

import io
import re
from datetime import date

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

from brd_engine.core.brd_markdown import Block, BlockKind, parse_markdown
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TITLE = "Business Requirements Document"
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
HEADER_FILL = "D9E1F2"

_BOLD = re.compile(r"\*\*(.+?)\*\*")


def _add_inline_runs(paragraph, text: str, bold: bool = False) -> None:
    """Add text to a paragraph, turning **spans** into bold runs."""
    position = 0
    for match in _BOLD.finditer(text):
        if match.start() > position:
            paragraph.add_run(text[position : match.start()]).bold = bold or None
        paragraph.add_run(match.group(1)).bold = True
        position = match.end()
    if position < len(text):
        paragraph.add_run(text[position:]).bold = bold or None


def _shade_cell(cell, fill: str) -> None:
    shading = OxmlElement("w:shd")
    shading.set(qn("w:val"), "clear")
    shading.set(qn("w:color"), "auto")
    shading.set(qn("w:fill"), fill)
    cell._tc.get_or_add_tcPr().append(shading)


def _add_table(document, block: Block) -> None:
    column_count = max(len(row) for row in block.rows)
    table = document.add_table(rows=0, cols=column_count)
    table.style = "Table Grid"

    for row_index, row in enumerate(block.rows):
        is_header = row_index == 0
        cells = table.add_row().cells
        for column, cell in enumerate(cells):
            text = row[column] if column < len(row) else ""
            _add_inline_runs(cell.paragraphs[0], text, bold=is_header)
            if is_header:
                _shade_cell(cell, HEADER_FILL)


def _add_block(document, block: Block) -> None:
    if block.kind == BlockKind.HEADING:
        document.add_heading(block.text, level=block.level)
    elif block.kind == BlockKind.TABLE:
        _add_table(document, block)
    elif block.kind == BlockKind.BULLET:
        _add_inline_runs(document.add_paragraph(style="List Bullet"), block.text)
    elif block.kind == BlockKind.NUMBERED:
        _add_inline_runs(document.add_paragraph(style="List Number"), block.text)
    elif block.kind == BlockKind.SPACER:
        document.add_paragraph("")
    else:
        _add_inline_runs(document.add_paragraph(), block.text)


def render_docx(
    markdown: str,
    title: str = DEFAULT_TITLE,
    generated_on: date | None = None,
) -> bytes:
    """
    Convert BRD markdown to DOCX bytes.

    Args:
        markdown: Generated BRD markdown
        title: Document title (centered, Title style)
        generated_on: Date printed under the title (default today)

    Returns:
        DOCX file content
    """
    generated_on = generated_on or date.today()
    document = Document()

    title_paragraph = document.add_heading(title, level=0)
    title_paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER

    date_paragraph = document.add_paragraph()
    date_paragraph.add_run(f"Generated: {generated_on.isoformat()}").italic = True
    date_paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER

    blocks = parse_markdown(markdown)
    for block in blocks:
        _add_block(document, block)

    buffer = io.BytesIO()
    document.save(buffer)

    logger.info(f"Rendered DOCX with {len(blocks)} blocks")
    return buffer.getvalue()
