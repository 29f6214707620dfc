"""Block tree model for content written to Notion.

Key classes:
    BlockNode: A node of the block tree (kind, inline runs, children)
    BlockKind: Closed set of block kinds
    TextRun: Styled inline text, optionally linked

The materializer lives in ``src.blocks.materializer`` and is imported from
there directly.
"""

from .models import (
    BlockKind,
    BlockNode,
    TextRun,
    HEADING_KINDS,
    MEDIA_KINDS,
    paragraph,
    tree_depth,
    count_blocks,
)
from .serializer import to_notion, rich_text_to_notion

__all__ = [
    'BlockKind',
    'BlockNode',
    'TextRun',
    'HEADING_KINDS',
    'MEDIA_KINDS',
    'paragraph',
    'tree_depth',
    'count_blocks',
    'to_notion',
    'rich_text_to_notion',
]
