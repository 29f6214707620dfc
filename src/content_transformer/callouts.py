"""Fold ``:::kind ... :::`` fenced regions into callout blocks.

Outline exports notices as fenced regions::

    :::warning Careful
    Body paragraphs
    :::

After parsing, the opening fence is a paragraph starting with ``:::kind``
and the closing fence a paragraph whose text is exactly ``:::``. The blocks
in between become the callout's children; any text after the kind on the
opening line becomes the callout's own text.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from src.blocks.models import BlockKind, BlockNode, TextRun

logger = logging.getLogger(__name__)

CALLOUT_OPEN = re.compile(r'^:::(info|tip|warning|success)\s*')
CALLOUT_CLOSE = ':::'

# kind -> (icon, color)
CALLOUT_STYLES: Dict[str, Tuple[str, str]] = {
    'tip': ('💡', 'yellow_background'),
    'success': ('✅', 'green_background'),
    'warning': ('⚠️', 'orange_background'),
    'info': ('ℹ️', 'blue_background'),
}


@dataclass
class _OpenCallout:
    kind: str
    rich_text: List[TextRun]
    children: List[BlockNode] = field(default_factory=list)

    def to_block(self) -> BlockNode:
        icon, color = CALLOUT_STYLES[self.kind]
        return BlockNode(
            kind=BlockKind.CALLOUT,
            rich_text=self.rich_text,
            children=self.children,
            icon=icon,
            color=color,
        )


def drop_leading_text(runs: List[TextRun], count: int) -> List[TextRun]:
    """Remove the first ``count`` characters from a list of runs, keeping styles."""
    result: List[TextRun] = []
    for run in runs:
        if count >= len(run.content):
            count -= len(run.content)
            continue
        if count:
            run = TextRun(
                content=run.content[count:],
                bold=run.bold,
                italic=run.italic,
                strikethrough=run.strikethrough,
                code=run.code,
                link=run.link,
            )
            count = 0
        result.append(run)
    return result


def fold_callouts(blocks: List[BlockNode], source_path: Optional[str] = None) -> List[BlockNode]:
    """Replace fenced regions in a top-level block list with callout blocks.

    Args:
        blocks: Parsed top-level blocks
        source_path: Document being transformed, used in warnings

    Returns:
        Block list with fenced regions folded
    """
    folded: List[BlockNode] = []
    current: Optional[_OpenCallout] = None

    for block in blocks:
        if block.kind is BlockKind.PARAGRAPH:
            text = block.plain_text
            opening = CALLOUT_OPEN.match(text)
            if opening:
                if current is not None:
                    logger.warning(f"Callout opened inside another callout in {source_path}, closing the outer one")
                    folded.append(current.to_block())
                current = _OpenCallout(
                    kind=opening.group(1),
                    rich_text=drop_leading_text(block.rich_text, opening.end()),
                )
                continue

            if text.strip() == CALLOUT_CLOSE:
                if current is not None:
                    folded.append(current.to_block())
                    current = None
                else:
                    logger.debug(f"Stray callout closing fence dropped in {source_path}")
                continue

        if current is not None:
            current.children.append(block)
        else:
            folded.append(block)

    if current is not None:
        logger.warning(f"Unterminated {current.kind} callout in {source_path}, closing at end of document")
        folded.append(current.to_block())

    return folded
