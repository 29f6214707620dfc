"""Serialization of BlockNode trees to Notion API payloads.

Every BlockKind has exactly one serializer; an unmapped kind is a
programming error and raises ValueError rather than being sent as-is.
"""

from typing import Any, Callable, Dict, List

from .models import BlockKind, BlockNode, TextRun

# Notion rejects text objects longer than this
MAX_TEXT_LENGTH = 2000

# Languages accepted by the Notion code block
NOTION_CODE_LANGUAGES = {
    "bash", "c", "c#", "c++", "css", "diff", "docker", "go", "graphql",
    "html", "java", "javascript", "json", "kotlin", "makefile", "markdown",
    "php", "plain text", "powershell", "python", "ruby", "rust", "scss",
    "shell", "sql", "swift", "typescript", "xml", "yaml",
}

CODE_LANGUAGE_ALIASES = {
    "sh": "shell",
    "zsh": "shell",
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "yml": "yaml",
    "cpp": "c++",
    "csharp": "c#",
    "dockerfile": "docker",
    "md": "markdown",
    "text": "plain text",
    "txt": "plain text",
}


def rich_text_to_notion(runs: List[TextRun]) -> List[Dict[str, Any]]:
    """Convert text runs to Notion rich text objects.

    Runs longer than MAX_TEXT_LENGTH are split into consecutive objects
    carrying the same annotations and link.
    """
    rich_text: List[Dict[str, Any]] = []
    for run in runs:
        if not run.content:
            continue
        for start in range(0, len(run.content), MAX_TEXT_LENGTH):
            text: Dict[str, Any] = {"content": run.content[start:start + MAX_TEXT_LENGTH]}
            if run.link:
                text["link"] = {"url": run.link}
            rich_text.append({
                "type": "text",
                "text": text,
                "annotations": {
                    "bold": run.bold,
                    "italic": run.italic,
                    "strikethrough": run.strikethrough,
                    "underline": False,
                    "code": run.code,
                    "color": "default",
                },
            })
    return rich_text


def code_language(language: str) -> str:
    """Map a fenced code info string to a Notion code language."""
    name = (language or "").strip().lower()
    name = CODE_LANGUAGE_ALIASES.get(name, name)
    return name if name in NOTION_CODE_LANGUAGES else "plain text"


def to_notion(block: BlockNode) -> Dict[str, Any]:
    """Serialize one block (and its children) to a Notion block object.

    Raises:
        ValueError: If the block kind has no serializer
    """
    serializer = _SERIALIZERS.get(block.kind)
    if serializer is None:
        raise ValueError(f"No Notion serializer for block kind {block.kind!r}")

    body = serializer(block)
    if block.children and block.kind is not BlockKind.TABLE:
        body["children"] = [to_notion(child) for child in block.children]
    return {"object": "block", "type": block.kind.value, block.kind.value: body}


def _text_body(block: BlockNode) -> Dict[str, Any]:
    return {"rich_text": rich_text_to_notion(block.rich_text)}


def _to_do_body(block: BlockNode) -> Dict[str, Any]:
    return {"rich_text": rich_text_to_notion(block.rich_text), "checked": block.checked}


def _code_body(block: BlockNode) -> Dict[str, Any]:
    return {
        "rich_text": rich_text_to_notion(block.rich_text),
        "language": code_language(block.language or ""),
    }


def _divider_body(block: BlockNode) -> Dict[str, Any]:
    return {}


def _table_body(block: BlockNode) -> Dict[str, Any]:
    return {
        "table_width": block.table_width,
        "has_column_header": block.has_column_header,
        "has_row_header": False,
        "children": [to_notion(row) for row in block.children],
    }


def _table_row_body(block: BlockNode) -> Dict[str, Any]:
    return {"cells": [rich_text_to_notion(cell) for cell in block.cells]}


def _callout_body(block: BlockNode) -> Dict[str, Any]:
    body: Dict[str, Any] = {"rich_text": rich_text_to_notion(block.rich_text)}
    if block.icon:
        body["icon"] = {"type": "emoji", "emoji": block.icon}
    if block.color:
        body["color"] = block.color
    return body


def _external_body(block: BlockNode) -> Dict[str, Any]:
    return {
        "type": "external",
        "external": {"url": block.url},
        "caption": rich_text_to_notion(block.caption),
    }


_SERIALIZERS: Dict[BlockKind, Callable[[BlockNode], Dict[str, Any]]] = {
    BlockKind.PARAGRAPH: _text_body,
    BlockKind.HEADING_1: _text_body,
    BlockKind.HEADING_2: _text_body,
    BlockKind.HEADING_3: _text_body,
    BlockKind.BULLETED_LIST_ITEM: _text_body,
    BlockKind.NUMBERED_LIST_ITEM: _text_body,
    BlockKind.QUOTE: _text_body,
    BlockKind.TO_DO: _to_do_body,
    BlockKind.CODE: _code_body,
    BlockKind.DIVIDER: _divider_body,
    BlockKind.TABLE: _table_body,
    BlockKind.TABLE_ROW: _table_row_body,
    BlockKind.CALLOUT: _callout_body,
    BlockKind.IMAGE: _external_body,
    BlockKind.FILE: _external_body,
}
