"""Drop links Notion would reject.

Notion only accepts absolute URLs in links and external media. Links whose
target is not absolute are removed, keeping their text. Media blocks with a
relative target become a paragraph naming the attachment.
"""

import dataclasses
import logging
from typing import List, Optional
from urllib.parse import urlparse

from src.blocks.models import BlockNode, MEDIA_KINDS, TextRun, paragraph
from src.models.transform_report import TransformReport

logger = logging.getLogger(__name__)

NETLOC_SCHEMES = {"http", "https", "ftp"}
PATH_SCHEMES = {"mailto", "tel"}


def is_absolute_url(url: Optional[str]) -> bool:
    """Return True if ``url`` is an absolute URL Notion can link to."""
    if not url:
        return False
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    if scheme in NETLOC_SCHEMES:
        return bool(parsed.netloc)
    if scheme in PATH_SCHEMES:
        return bool(parsed.path)
    return False


def _validate_runs(runs: List[TextRun], report: Optional[TransformReport]) -> List[TextRun]:
    validated = []
    for run in runs:
        if run.link is not None and not is_absolute_url(run.link):
            logger.debug(f"Dropped non-absolute link target: {run.link}")
            if report is not None:
                report.links_dropped += 1
            run = dataclasses.replace(run, link=None)
        validated.append(run)
    return validated


def validate_links(
    blocks: List[BlockNode],
    report: Optional[TransformReport] = None,
) -> List[BlockNode]:
    """Return a copy of the block tree with only absolute link targets."""
    validated: List[BlockNode] = []
    for block in blocks:
        if block.kind in MEDIA_KINDS and not is_absolute_url(block.url):
            label = "".join(run.content for run in block.caption) or block.url or ""
            logger.warning(f"Attachment {block.url} has no public URL, kept as text")
            validated.append(paragraph(f"{label} (attachment not migrated: {block.url})"))
            continue

        validated.append(dataclasses.replace(
            block,
            rich_text=_validate_runs(block.rich_text, report),
            caption=_validate_runs(block.caption, report),
            cells=[_validate_runs(cell, report) for cell in block.cells],
            children=validate_links(block.children, report),
        ))
    return validated
