"""Rehome attachment references to durable asset-store URLs."""

import asyncio
import dataclasses
import logging
import posixpath
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set
from urllib.parse import unquote

from src.asset_store.errors import AssetError
from src.blocks.models import BlockKind, BlockNode
from src.models.transform_report import TransformReport

logger = logging.getLogger(__name__)

DEFAULT_ASSET_DIRS = ("uploads", "public")


class AttachmentRehomer:
    """Uploads the attachments a document references and rewrites its links.

    Handles image references ``![alt](uploads/a.png "title")`` and plain
    links ``[report.pdf](public/report.pdf)``. Paths are url-decoded and
    looked up relative to the document's directory, then relative to the
    export root. A failing attachment is logged and its reference left
    untouched.
    """

    def __init__(
        self,
        asset_store,
        export_root: Path,
        asset_dirs: Iterable[str] = DEFAULT_ASSET_DIRS,
    ):
        """Initialize the rehomer.

        Args:
            asset_store: Object exposing ``async upload_file(local_path, reference)``
            export_root: Directory the export was unpacked to
            asset_dirs: Directory names holding attachments
        """
        self._store = asset_store
        self._export_root = Path(export_root)
        dirs = "|".join(re.escape(name) for name in asset_dirs)
        self._pattern = re.compile(
            r'(!?)\[([^\]]*)\]\('
            r'((?:\./|/)?(?:' + dirs + r')/[^)\s]+?)'
            r'(?:\s+"([^"]*)")?\)'
        )

    async def rehome(
        self,
        content: str,
        source_path: str,
        report: Optional[TransformReport] = None,
        files: Optional[Set[str]] = None,
    ) -> str:
        """Rewrite every attachment reference in ``content``.

        Args:
            content: Markdown text of the document
            source_path: Export-relative path of the document
            report: Counters updated with rehomed and failed attachments
            files: Collects the new URLs of rehomed non-image attachments

        Returns:
            Markdown with rehomed references
        """
        matches = list(self._pattern.finditer(content))
        if not matches:
            return content

        references: List[str] = []
        for match in matches:
            if match.group(3) not in references:
                references.append(match.group(3))

        urls = await asyncio.gather(
            *(self._rehome_one(reference, source_path) for reference in references)
        )
        rehomed: Dict[str, Optional[str]] = dict(zip(references, urls))

        parts: List[str] = []
        position = 0
        for match in matches:
            url = rehomed[match.group(3)]
            parts.append(content[position:match.start()])
            if url is None:
                parts.append(match.group(0))
                if report is not None:
                    report.asset_failures += 1
            else:
                bang, label, _, title = match.groups()
                title_part = f' "{title}"' if title else ''
                parts.append(f"{bang}[{label}]({url}{title_part})")
                if not bang and files is not None:
                    files.add(url)
                if report is not None:
                    report.assets_rehomed += 1
            position = match.end()
        parts.append(content[position:])
        return "".join(parts)

    async def _rehome_one(self, reference: str, source_path: str) -> Optional[str]:
        decoded = unquote(reference)
        local_path = self._local_path(decoded, source_path)
        try:
            return await self._store.upload_file(local_path, decoded)
        except AssetError as e:
            logger.warning(f"Attachment {decoded} in {source_path} left unresolved: {e}")
            return None

    def _local_path(self, reference: str, source_path: str) -> Path:
        relative = reference.removeprefix("./")
        if relative.startswith("/"):
            return self._export_root / relative.lstrip("/")

        document_dir = posixpath.dirname(source_path).lstrip("/")
        candidates = [self._export_root / document_dir / relative, self._export_root / relative]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return candidates[0]


def promote_file_links(blocks: List[BlockNode], files: Set[str]) -> List[BlockNode]:
    """Turn paragraphs that only link to a rehomed attachment into file blocks.

    Args:
        blocks: Blocks to scan, searched recursively
        files: URLs of rehomed non-image attachments

    Returns:
        New block list with file blocks
    """
    if not files:
        return blocks

    result: List[BlockNode] = []
    for block in blocks:
        if block.kind is BlockKind.PARAGRAPH and not block.children:
            url = _sole_link(block, files)
            if url is not None:
                caption = [dataclasses.replace(run, link=None) for run in block.rich_text]
                result.append(BlockNode(kind=BlockKind.FILE, url=url, caption=caption))
                continue
        if block.children:
            block = dataclasses.replace(block, children=promote_file_links(block.children, files))
        result.append(block)
    return result


def _sole_link(block: BlockNode, files: Set[str]) -> Optional[str]:
    links = {run.link for run in block.rich_text if run.content.strip() or run.link}
    if len(links) == 1:
        link = links.pop()
        if link in files:
            return link
    return None
