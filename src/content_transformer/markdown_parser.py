"""Markdown to block tree parser.

Parses markdown with mistune's AST renderer and maps its tokens onto
BlockNodes. Images standing in a paragraph are lifted out into image blocks
since Notion has no inline images.
"""

import logging
from typing import Any, Dict, List, Optional

import mistune

from src.blocks.models import BlockKind, BlockNode, HEADING_KINDS, TextRun
from .errors import TransformError

logger = logging.getLogger(__name__)

Token = Dict[str, Any]

MARKDOWN_PLUGINS = ['table', 'strikethrough', 'task_lists']


class MarkdownParser:
    """Parse markdown text into a list of top-level BlockNodes.

    Example:
        >>> parser = MarkdownParser()
        >>> blocks = parser.parse("# Title\\n\\nSome **bold** text")
        >>> [block.kind for block in blocks]
        [<BlockKind.HEADING_1: 'heading_1'>, <BlockKind.PARAGRAPH: 'paragraph'>]
    """

    def __init__(self) -> None:
        self._markdown = mistune.create_markdown(renderer='ast', plugins=MARKDOWN_PLUGINS)

    def parse(self, content: str, source_path: Optional[str] = None) -> List[BlockNode]:
        """Parse markdown into blocks.

        Args:
            content: Markdown text
            source_path: Document being parsed, used in errors

        Returns:
            Top-level blocks in document order

        Raises:
            TransformError: If the markdown cannot be parsed
        """
        logger.debug(f"Parsing {len(content)} characters of markdown")
        try:
            tokens = self._markdown(content)
            return self._blocks(tokens)
        except Exception as e:
            raise TransformError(str(e), source_path) from e

    def _blocks(self, tokens: List[Token]) -> List[BlockNode]:
        blocks: List[BlockNode] = []
        for token in tokens:
            blocks.extend(self._block(token))
        return blocks

    def _block(self, token: Token) -> List[BlockNode]:
        token_type = token['type']

        if token_type == 'paragraph' or token_type == 'block_text':
            return self._paragraph(token.get('children', []))

        if token_type == 'heading':
            level = min(token.get('attrs', {}).get('level', 1), 3)
            return [BlockNode(kind=HEADING_KINDS[level], rich_text=self._inline(token['children']))]

        if token_type == 'list':
            return self._list_items(token)

        if token_type == 'block_code':
            info = (token.get('attrs') or {}).get('info') or ''
            language = info.split()[0] if info.strip() else None
            return [BlockNode(
                kind=BlockKind.CODE,
                rich_text=[TextRun(content=token.get('raw', '').rstrip('\n'))],
                language=language,
            )]

        if token_type == 'block_quote':
            return [self._container(BlockKind.QUOTE, token.get('children', []))]

        if token_type == 'thematic_break':
            return [BlockNode(kind=BlockKind.DIVIDER)]

        if token_type == 'table':
            return [self._table(token)]

        if token_type == 'block_html':
            raw = token.get('raw', '').strip()
            return [BlockNode(kind=BlockKind.PARAGRAPH, rich_text=[TextRun(content=raw)])] if raw else []

        if token_type == 'blank_line':
            return []

        logger.debug(f"Unsupported markdown token '{token_type}', flattening to text")
        if 'children' in token:
            return self._blocks(token['children'])
        raw = token.get('raw', '').strip()
        return [BlockNode(kind=BlockKind.PARAGRAPH, rich_text=[TextRun(content=raw)])] if raw else []

    def _paragraph(self, children: List[Token]) -> List[BlockNode]:
        """Build paragraph blocks, lifting images out as image blocks."""
        blocks: List[BlockNode] = []
        pending: List[Token] = []

        def flush() -> None:
            runs = self._inline(pending)
            if "".join(run.content for run in runs).strip():
                blocks.append(BlockNode(kind=BlockKind.PARAGRAPH, rich_text=runs))
            pending.clear()

        for child in children:
            if child['type'] == 'image':
                flush()
                blocks.append(self._image(child))
            else:
                pending.append(child)
        flush()
        return blocks

    def _image(self, token: Token) -> BlockNode:
        attrs = token.get('attrs', {})
        caption = self._inline(token.get('children', []))
        if not caption and attrs.get('title'):
            caption = [TextRun(content=attrs['title'])]
        return BlockNode(kind=BlockKind.IMAGE, url=attrs.get('url', ''), caption=caption)

    def _container(self, kind: BlockKind, children: List[Token]) -> BlockNode:
        """Build a block whose first text child is its own content."""
        node = BlockNode(kind=kind)
        has_text = False
        for child in children:
            if not has_text and child['type'] in ('paragraph', 'block_text'):
                node.rich_text = self._inline(child.get('children', []))
                has_text = True
            else:
                node.children.extend(self._block(child))
        return node

    def _list_items(self, token: Token) -> List[BlockNode]:
        ordered = token.get('attrs', {}).get('ordered', False)
        kind = BlockKind.NUMBERED_LIST_ITEM if ordered else BlockKind.BULLETED_LIST_ITEM

        items: List[BlockNode] = []
        for item in token.get('children', []):
            if item['type'] == 'task_list_item':
                node = self._container(BlockKind.TO_DO, item.get('children', []))
                node.checked = bool(item.get('attrs', {}).get('checked'))
            else:
                node = self._container(kind, item.get('children', []))
            items.append(node)
        return items

    def _table(self, token: Token) -> BlockNode:
        rows: List[BlockNode] = []
        has_header = False

        for section in token.get('children', []):
            if section['type'] == 'table_head':
                has_header = True
                rows.append(self._table_row(section.get('children', [])))
            elif section['type'] == 'table_body':
                for row in section.get('children', []):
                    rows.append(self._table_row(row.get('children', [])))

        width = max((len(row.cells) for row in rows), default=0)
        return BlockNode(
            kind=BlockKind.TABLE,
            children=rows,
            table_width=width,
            has_column_header=has_header,
        )

    def _table_row(self, cells: List[Token]) -> BlockNode:
        return BlockNode(
            kind=BlockKind.TABLE_ROW,
            cells=[self._inline(cell.get('children', [])) for cell in cells],
        )

    def _inline(self, tokens: List[Token], style: Optional[Dict[str, Any]] = None) -> List[TextRun]:
        """Flatten inline tokens into styled text runs."""
        style = style or {}
        runs: List[TextRun] = []

        for token in tokens:
            token_type = token['type']
            if token_type == 'text':
                runs.append(TextRun(content=token.get('raw', ''), **style))
            elif token_type == 'emphasis':
                runs.extend(self._inline(token['children'], {**style, 'italic': True}))
            elif token_type == 'strong':
                runs.extend(self._inline(token['children'], {**style, 'bold': True}))
            elif token_type == 'strikethrough':
                runs.extend(self._inline(token['children'], {**style, 'strikethrough': True}))
            elif token_type == 'codespan':
                runs.append(TextRun(content=token.get('raw', ''), **{**style, 'code': True}))
            elif token_type == 'link':
                url = token.get('attrs', {}).get('url')
                runs.extend(self._inline(token.get('children', []), {**style, 'link': url}))
            elif token_type == 'image':
                alt = self._inline(token.get('children', []), style)
                runs.extend(alt or [TextRun(content=token.get('attrs', {}).get('url', ''), **style)])
            elif token_type == 'linebreak':
                runs.append(TextRun(content='\n', **style))
            elif token_type == 'softbreak':
                runs.append(TextRun(content=' ', **style))
            elif token_type == 'inline_html':
                runs.append(TextRun(content=token.get('raw', ''), **style))
            elif 'children' in token:
                runs.extend(self._inline(token['children'], style))
            elif token.get('raw'):
                runs.append(TextRun(content=token['raw'], **style))
        return runs
