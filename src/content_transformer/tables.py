"""Table normalization.

Notion rejects tables whose rows disagree with the declared width, and caps
both width and the number of rows per request. Tables are padded to a
rectangle, truncated to ``max_width`` columns and split every ``max_rows``
rows with the header repeated.

The markdown parser drops any pipe table whose rows disagree with the header
cell count, so ragged pipe tables are evened out to their widest row before
parsing.
"""

import dataclasses
import logging
import re
from typing import List, Optional

from src.blocks.models import BlockKind, BlockNode, paragraph
from src.models.transform_report import TransformReport
from .line_cleanup import outside_code

logger = logging.getLogger(__name__)

DEFAULT_MAX_TABLE_WIDTH = 50
MAX_TABLE_ROWS = 100
INVALID_TABLE_TEXT = "Table conversion failed - invalid format"

TABLE_LINE = re.compile(r'^ {0,3}\|')
DELIMITER_ROW = re.compile(r'^ {0,3}\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$')
CELL_SEPARATOR = re.compile(r'(?<!\\)\|')


def normalize_tables(
    blocks: List[BlockNode],
    max_width: int = DEFAULT_MAX_TABLE_WIDTH,
    max_rows: int = MAX_TABLE_ROWS,
    report: Optional[TransformReport] = None,
) -> List[BlockNode]:
    """Normalize every table in a block tree.

    Args:
        blocks: Blocks to normalize, searched recursively
        max_width: Maximum number of columns kept
        max_rows: Maximum number of rows per table block
        report: Counters updated with truncated tables

    Returns:
        New block list with normalized tables
    """
    result: List[BlockNode] = []
    for block in blocks:
        if block.kind is BlockKind.TABLE:
            result.extend(_normalize_table(block, max_width, max_rows, report))
        elif block.children:
            result.append(dataclasses.replace(
                block,
                children=normalize_tables(block.children, max_width, max_rows, report),
            ))
        else:
            result.append(block)
    return result


def _normalize_table(
    table: BlockNode,
    max_width: int,
    max_rows: int,
    report: Optional[TransformReport],
) -> List[BlockNode]:
    rows = [row for row in table.children if row.kind is BlockKind.TABLE_ROW]
    if len(rows) != len(table.children):
        logger.warning(f"Dropped {len(table.children) - len(rows)} non-row blocks from a table")

    width = max((len(row.cells) for row in rows), default=0)
    if width == 0:
        logger.warning("Table has no cells, replaced with a notice")
        return [paragraph(INVALID_TABLE_TEXT)]

    if width > max_width:
        logger.warning(f"Table of {width} columns truncated to {max_width}")
        width = max_width
        if report is not None:
            report.tables_truncated += 1

    rows = [
        dataclasses.replace(row, cells=row.cells[:width] + [[] for _ in range(width - len(row.cells))])
        for row in rows
    ]

    header = rows[0] if table.has_column_header else None
    if len(rows) <= max_rows:
        chunks = [rows]
    else:
        body = rows[1:] if header is not None else rows
        per_table = max_rows - 1 if header is not None else max_rows
        chunks = [body[i:i + per_table] for i in range(0, len(body), per_table)]
        if header is not None:
            chunks = [[header] + chunk for chunk in chunks]
        logger.info(f"Table of {len(rows)} rows split into {len(chunks)} tables")

    return [
        dataclasses.replace(table, children=chunk, table_width=width)
        for chunk in chunks
    ]


def split_pipe_row(line: str) -> List[str]:
    """Split a pipe-table line into stripped cell texts."""
    body = line.strip()
    if body.startswith('|'):
        body = body[1:]
    if body.endswith('|') and not body.endswith('\\|'):
        body = body[:-1]
    return [cell.strip() for cell in CELL_SEPARATOR.split(body)]


def even_out_pipe_tables(content: str) -> str:
    """Pad every ragged pipe table outside fenced code to its widest row.

    Header, delimiter and body rows all get the widest row's cell count so
    the parser keeps the table; width limits are applied later by
    normalize_tables. Rectangular tables are left as written.

    Args:
        content: Markdown text

    Returns:
        Markdown with rectangular pipe tables
    """
    return outside_code(content, _even_out)


def _even_out(text: str) -> str:
    lines = text.split('\n')
    result: List[str] = []
    index = 0

    while index < len(lines):
        if (
            index + 1 < len(lines)
            and TABLE_LINE.match(lines[index])
            and DELIMITER_ROW.match(lines[index + 1])
        ):
            end = index + 2
            while end < len(lines) and TABLE_LINE.match(lines[end]):
                end += 1
            result.extend(_rectangular(lines[index:end]))
            index = end
        else:
            result.append(lines[index])
            index += 1

    return '\n'.join(result)


def _rectangular(lines: List[str]) -> List[str]:
    rows = [split_pipe_row(line) for line in lines]
    width = max(len(row) for row in rows)
    if all(len(row) == width for row in rows):
        return lines

    logger.debug(f"Ragged table of {len(rows) - 1} rows padded to {width} columns")
    rows[1] = rows[1] + ['---'] * (width - len(rows[1]))
    return [
        '| ' + ' | '.join(row + [''] * (width - len(row))) + ' |'
        for row in rows
    ]
