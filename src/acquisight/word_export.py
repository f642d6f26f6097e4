"""Markdown-to-Word export for AI analysis text.

A single pass over the lines with two states, ``SCANNING`` and ``IN_TABLE``:

- a line that is wholly bold (``**Heading**``) becomes a level 2 heading;
- pipe-delimited lines collect into one table until a non-table line
  arrives; separator rows (``|---|:--:|``) are dropped;
- any other line becomes a paragraph with ``**bold**`` markers removed and
  ``[text](url)`` links reduced to their text.

Lists, nested structures and inline formatting other than bold and links are
not interpreted; such lines come through as plain paragraphs.
"""

import enum
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

from .exceptions import RenderError

logger = logging.getLogger(__name__)

HEADER_ROW_FILL = "667eea"

LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]+\)")
BOLD_PATTERN = re.compile(r"\*\*([^*]+)\*\*")
SEPARATOR_CELL_PATTERN = re.compile(r"^:?-+:?$")


class ScanState(enum.Enum):
    SCANNING = "scanning"
    IN_TABLE = "in_table"


@dataclass
class Heading:
    text: str


@dataclass
class TextParagraph:
    text: str


@dataclass
class TableBlock:
    rows: List[List[str]] = field(default_factory=list)


Block = Union[Heading, TextParagraph, TableBlock]


def strip_inline(text: str) -> str:
    """Drop bold markers and reduce markdown links to their label."""
    return LINK_PATTERN.sub(r"\1", BOLD_PATTERN.sub(r"\1", text))


def _is_bold_only(line: str) -> bool:
    return len(line) > 4 and line.startswith("**") and line.endswith("**") and "|" not in line


def _is_table_row(line: str) -> bool:
    return len(line) > 1 and line.startswith("|") and line.endswith("|")


def split_table_row(line: str) -> List[str]:
    """Cells between the outer pipes, trimmed. Empty cells are kept."""
    return [cell.strip() for cell in line[1:-1].split("|")]


def _is_separator_row(cells: List[str]) -> bool:
    return all(SEPARATOR_CELL_PATTERN.match(cell.replace(" ", "")) for cell in cells)


def parse_markdown_blocks(content: str) -> List[Block]:
    """Convert analysis text into headings, paragraphs and tables."""
    blocks: List[Block] = []
    state = ScanState.SCANNING
    table = TableBlock()

    def flush_table() -> None:
        nonlocal table
        if table.rows:
            blocks.append(table)
        table = TableBlock()

    for raw in content.splitlines():
        line = raw.strip()

        if _is_table_row(line):
            state = ScanState.IN_TABLE
            cells = split_table_row(line)
            if not _is_separator_row(cells):
                table.rows.append([strip_inline(cell) for cell in cells])
            continue

        if not line:
            # Blank lines inside a table do not end it
            if state is ScanState.SCANNING:
                blocks.append(TextParagraph(""))
            continue

        if state is ScanState.IN_TABLE:
            flush_table()
            state = ScanState.SCANNING

        if _is_bold_only(line):
            blocks.append(Heading(line.replace("**", "").strip()))
        else:
            blocks.append(TextParagraph(strip_inline(line)))

    if state is ScanState.IN_TABLE:
        flush_table()

    return blocks


def _shade_cell(cell: Any, fill: str) -> None:
    properties = cell._tc.get_or_add_tcPr()
    shading = OxmlElement("w:shd")
    shading.set(qn("w:val"), "clear")
    shading.set(qn("w:color"), "auto")
    shading.set(qn("w:fill"), fill)
    properties.append(shading)


def _add_table(document: Any, block: TableBlock) -> None:
    columns = max(len(row) for row in block.rows)
    table = document.add_table(rows=len(block.rows), cols=columns)
    table.style = "Table Grid"
    for row_index, row in enumerate(block.rows):
        for col_index in range(columns):
            cell = table.cell(row_index, col_index)
            cell.text = row[col_index] if col_index < len(row) else ""
            if row_index == 0:
                _shade_cell(cell, HEADER_ROW_FILL)


def build_word_document(
    content: str,
    title: str,
    model: Optional[str] = None,
    grounding_metadata: Optional[Dict[str, Any]] = None,
    generated: Optional[datetime] = None,
) -> bytes:
    """Render analysis text as a .docx file and return its bytes."""
    try:
        document = Document()

        heading = document.add_heading(title, level=0)
        heading.alignment = WD_ALIGN_PARAGRAPH.CENTER

        stamp = (generated or datetime.now()).strftime("%m/%d/%Y, %I:%M:%S %p")
        document.add_paragraph(f"Generated: {stamp}").alignment = WD_ALIGN_PARAGRAPH.CENTER
        document.add_paragraph(f"Model: {model or 'N/A'}").alignment = WD_ALIGN_PARAGRAPH.CENTER

        searches = (grounding_metadata or {}).get("webSearchQueries") or 0
        if isinstance(searches, list):
            searches = len(searches)
        if searches > 0:
            document.add_paragraph(
                f"Google Search Grounding: {searches} web searches performed"
            ).alignment = WD_ALIGN_PARAGRAPH.CENTER

        for block in parse_markdown_blocks(content):
            if isinstance(block, Heading):
                document.add_heading(block.text, level=2)
            elif isinstance(block, TableBlock):
                _add_table(document, block)
                document.add_paragraph("")
            else:
                document.add_paragraph(block.text)

        buffer = io.BytesIO()
        document.save(buffer)
    except Exception as e:
        logger.error(f"Word document generation error: {e}")
        raise RenderError(f"Word document generation failed: {e}") from e

    logger.info("Word document generated successfully")
    return buffer.getvalue()


def safe_filename(name: Optional[str], fallback: str = "analysis") -> str:
    """Replace anything outside [a-z0-9] with dashes."""
    cleaned = re.sub(r"[^a-z0-9]", "-", name or "", flags=re.IGNORECASE)
    return cleaned or fallback
