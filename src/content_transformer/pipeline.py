"""Exported markdown to Notion block tree pipeline."""

import logging
from typing import List, Optional, Set

from src.blocks.models import BlockNode, paragraph
from src.models.page_mapping import LocationMap
from src.models.transform_report import TransformReport
from .attachments import AttachmentRehomer, promote_file_links
from .callouts import fold_callouts
from .errors import TransformError
from .line_cleanup import clean_lines
from .link_resolver import LinkResolver
from .link_validator import validate_links
from .markdown_parser import MarkdownParser
from .mentions import fold_mentions
from .tables import DEFAULT_MAX_TABLE_WIDTH, even_out_pipe_tables, normalize_tables

logger = logging.getLogger(__name__)

CONVERSION_ERROR_TEMPLATE = "Error converting content: {error}"


class ContentTransformer:
    """Turns one exported document into a sanitized block tree.

    Steps, in order:
        1. line cleanup (artefacts, password warnings)
        2. mention folding
        3. attachment rehoming (skipped without a rehomer); paragraphs that
           only link to a rehomed file become file blocks after parsing
        4. cross-document link rewriting
        5. markdown parse (ragged pipe tables evened out first)
        6. callout folding
        7. table normalization
        8. link validation

    A parse failure replaces the document's content with one paragraph
    describing the error. Recoverable events are counted in ``report``.

    Example:
        >>> transformer = ContentTransformer(link_resolver=LinkResolver("wiki.example.com"))
        >>> blocks = await transformer.transform(text, "/docs/intro.md", location_map)
    """

    def __init__(
        self,
        rehomer: Optional[AttachmentRehomer] = None,
        link_resolver: Optional[LinkResolver] = None,
        parser: Optional[MarkdownParser] = None,
        max_table_width: int = DEFAULT_MAX_TABLE_WIDTH,
    ):
        """Initialize the transformer.

        Args:
            rehomer: Attachment rehomer, None to leave attachments untouched
            link_resolver: Internal link resolver (defaults to no origin domain)
            parser: Markdown parser
            max_table_width: Maximum number of table columns kept
        """
        self._rehomer = rehomer
        self._link_resolver = link_resolver or LinkResolver()
        self._parser = parser or MarkdownParser()
        self._max_table_width = max_table_width
        self.report = TransformReport()

    async def transform(
        self,
        raw_text: str,
        source_path: str,
        location_map: LocationMap,
    ) -> List[BlockNode]:
        """Transform a document.

        Args:
            raw_text: Document markdown as read from the export
            source_path: Export-relative path of the document
            location_map: Map of created destination documents

        Returns:
            Sanitized top-level blocks
        """
        self.report.documents += 1

        text = clean_lines(raw_text, source_path, self.report)
        text = fold_mentions(text)
        files: Set[str] = set()
        if self._rehomer is not None:
            text = await self._rehomer.rehome(text, source_path, self.report, files)
        text = self._link_resolver.resolve(text, source_path, location_map, self.report)

        try:
            blocks = self._parser.parse(even_out_pipe_tables(text), source_path)
        except TransformError as e:
            logger.error(f"Failed to convert {source_path}: {e.original_message}")
            self.report.conversion_failures += 1
            return [paragraph(CONVERSION_ERROR_TEMPLATE.format(error=e.original_message))]

        blocks = fold_callouts(blocks, source_path)
        blocks = promote_file_links(blocks, files)
        blocks = normalize_tables(blocks, self._max_table_width, report=self.report)
        blocks = validate_links(blocks, self.report)

        logger.debug(f"Transformed {source_path} into {len(blocks)} top-level blocks")
        return blocks
