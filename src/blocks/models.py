"""Data models for the block tree written to Notion.

This module defines the closed set of block kinds the migrator produces and
the BlockNode structure carrying them. Every block has a kind, inline content
(an ordered list of styled text runs) and an ordered, possibly empty list of
child blocks. Kind-specific data lives in dedicated optional fields.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional


class BlockKind(Enum):
    """Kinds of blocks, valued with their Notion block type names."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    QUOTE = "quote"
    CODE = "code"
    DIVIDER = "divider"
    TABLE = "table"
    TABLE_ROW = "table_row"
    CALLOUT = "callout"
    IMAGE = "image"
    FILE = "file"


HEADING_KINDS = {
    1: BlockKind.HEADING_1,
    2: BlockKind.HEADING_2,
    3: BlockKind.HEADING_3,
}

# Kinds that point at an external resource through ``url``
MEDIA_KINDS = {BlockKind.IMAGE, BlockKind.FILE}


@dataclass
class TextRun:
    """A run of text sharing the same annotations.

    Attributes:
        content: Plain text of the run
        bold: Bold annotation
        italic: Italic annotation
        strikethrough: Strikethrough annotation
        code: Inline code annotation
        link: Hyperlink target, None when the run is not a link
    """

    content: str
    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    code: bool = False
    link: Optional[str] = None


@dataclass
class BlockNode:
    """A node of the block tree.

    Attributes:
        kind: Block kind
        rich_text: Inline content of the block
        children: Nested blocks (table rows for a table)
        language: Code block language
        checked: To-do state
        url: Target of image and file blocks
        caption: Caption of media blocks
        icon: Emoji icon of a callout
        color: Background color of a callout
        table_width: Declared column count of a table
        has_column_header: Whether the first table row is a header
        cells: Cell contents of a table row, one list of runs per cell
    """

    kind: BlockKind
    rich_text: List[TextRun] = field(default_factory=list)
    children: List['BlockNode'] = field(default_factory=list)
    language: Optional[str] = None
    checked: bool = False
    url: Optional[str] = None
    caption: List[TextRun] = field(default_factory=list)
    icon: Optional[str] = None
    color: Optional[str] = None
    table_width: int = 0
    has_column_header: bool = False
    cells: List[List[TextRun]] = field(default_factory=list)

    @property
    def plain_text(self) -> str:
        """Concatenated text of the block's own runs."""
        return "".join(run.content for run in self.rich_text)

    def without_children(self) -> 'BlockNode':
        """Return a shallow copy of this block with no children."""
        clone = copy.copy(self)
        clone.children = []
        return clone


def paragraph(text: str) -> BlockNode:
    """Build a paragraph holding a single plain text run."""
    return BlockNode(kind=BlockKind.PARAGRAPH, rich_text=[TextRun(content=text)])


def tree_depth(blocks: Iterable[BlockNode]) -> int:
    """Maximum nesting depth of a block list (0 for an empty list).

    A flat list has depth 1, a list whose blocks have children depth 2, etc.
    """
    depth = 0
    for block in blocks:
        depth = max(depth, 1 + tree_depth(block.children))
    return depth


def count_blocks(blocks: Iterable[BlockNode]) -> int:
    """Total number of blocks in a tree, children included."""
    return sum(1 + count_blocks(block.children) for block in blocks)
