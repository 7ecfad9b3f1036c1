"""Line-oriented parser for generated BRD markdown.

The parser is a two-state machine. In NORMAL each line becomes its own block
(heading, bullet, numbered item, paragraph, or a spacer for a blank line). A
line containing a pipe opens a table and moves to IN_TABLE; any line that is
not a table row closes the table and returns to NORMAL. A blank line that
closes a table produces no spacer.
"""

import re
from dataclasses import dataclass, field
from enum import Enum


class LineKind(str, Enum):
    HEADING = "heading"
    TABLE_ROW = "table_row"
    BULLET = "bullet"
    NUMBERED = "numbered"
    PARAGRAPH = "paragraph"
    BLANK = "blank"


class ParserState(str, Enum):
    NORMAL = "normal"
    IN_TABLE = "in_table"


class BlockKind(str, Enum):
    HEADING = "heading"
    TABLE = "table"
    BULLET = "bullet"
    NUMBERED = "numbered"
    PARAGRAPH = "paragraph"
    SPACER = "spacer"


@dataclass
class Block:
    kind: BlockKind
    text: str = ""
    level: int = 0
    rows: list[list[str]] = field(default_factory=list)

    @property
    def header(self) -> list[str]:
        return self.rows[0] if self.rows else []


_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_BULLET = re.compile(r"^\s*[-*]\s+(.*)$")
_NUMBERED = re.compile(r"^\s*\d+\.\s+(.*)$")


def classify_line(line: str) -> LineKind:
    """Classify one markdown line. Headings win over pipes, pipes over lists."""
    if not line.strip():
        return LineKind.BLANK
    if _HEADING.match(line):
        return LineKind.HEADING
    if "|" in line:
        return LineKind.TABLE_ROW
    if _BULLET.match(line):
        return LineKind.BULLET
    if _NUMBERED.match(line):
        return LineKind.NUMBERED
    return LineKind.PARAGRAPH


def is_separator_row(line: str) -> bool:
    """True for alignment rows such as `|---|:--:|`."""
    stripped = line.strip()
    return "-" in stripped and all(c in "|-: " for c in stripped)


def split_table_row(line: str) -> list[str]:
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in stripped.split("|")]


def _line_block(kind: LineKind, line: str) -> Block:
    if kind == LineKind.HEADING:
        match = _HEADING.match(line)
        return Block(BlockKind.HEADING, text=match.group(2).strip(), level=min(len(match.group(1)), 3))
    if kind == LineKind.BULLET:
        return Block(BlockKind.BULLET, text=_BULLET.match(line).group(1).strip())
    if kind == LineKind.NUMBERED:
        return Block(BlockKind.NUMBERED, text=_NUMBERED.match(line).group(1).strip())
    if kind == LineKind.BLANK:
        return Block(BlockKind.SPACER)
    return Block(BlockKind.PARAGRAPH, text=line.strip())


def parse_markdown(markdown: str) -> list[Block]:
    """Parse BRD markdown into renderable blocks, in document order."""
    blocks: list[Block] = []
    state = ParserState.NORMAL
    table_lines: list[str] = []

    def close_table() -> None:
        rows = [split_table_row(line) for line in table_lines if not is_separator_row(line)]
        if rows:
            blocks.append(Block(BlockKind.TABLE, rows=rows))
        table_lines.clear()

    for line in markdown.splitlines():
        kind = classify_line(line)

        if state == ParserState.IN_TABLE:
            if kind == LineKind.TABLE_ROW:
                table_lines.append(line)
                continue
            close_table()
            state = ParserState.NORMAL
            if kind == LineKind.BLANK:
                continue

        if kind == LineKind.TABLE_ROW:
            table_lines.append(line)
            state = ParserState.IN_TABLE
        else:
            blocks.append(_line_block(kind, line))

    if state == ParserState.IN_TABLE:
        close_table()

    return blocks
