"""Two-phase walk of an exported document tree into Notion.

Documents link to each other in any order, so a link can only be rebuilt once
its target exists. The walk therefore runs twice over the export:

    create   - every folder gets a folder document and every markdown file an
               empty document; each one is recorded in the LocationMap
    populate - every mapped markdown file is read, transformed (links are
               rewritten against the now complete LocationMap) and written

Export layout: a folder ``D`` may come with a sibling ``D.md`` holding the
folder's own content. That file is never created as a document of its own;
it is keyed like the folder document and fills it in the populate phase.

Siblings are processed concurrently; the RateLimiter keeps the remote calls
within Notion's limits and ordered per destination.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional, Set

from src.blocks.materializer import BlockMaterializer
from src.blocks.models import paragraph
from src.content_transformer.attachments import DEFAULT_ASSET_DIRS
from src.content_transformer.pipeline import CONVERSION_ERROR_TEMPLATE, ContentTransformer
from src.models.page_mapping import LocationMap, PageMapping
from src.notion_api.api_wrapper import DestinationClient
from src.notion_api.error_policy import ErrorPolicy
from src.notion_api.errors import FatalConfigError, RemoteWriteError
from .models import MigrationSummary, PHASE_CREATE, PHASE_POPULATE, ProgressEvent

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 500
MARKDOWN_SUFFIX = ".md"

ProgressCallback = Callable[[ProgressEvent], None]


class TreeWalker:
    """Migrates an export directory under a Notion page.

    Example:
        >>> walker = TreeWalker(Path("export"), root_page_id, client, transformer)
        >>> summary = await walker.run()
        >>> print(summary.documents_populated)
    """

    def __init__(
        self,
        root: Path,
        destination_id: str,
        client: DestinationClient,
        transformer: ContentTransformer,
        policy: Optional[ErrorPolicy] = None,
        materializer: Optional[BlockMaterializer] = None,
        asset_dirs: Iterable[str] = DEFAULT_ASSET_DIRS,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        progress_callback: Optional[ProgressCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the walker.

        Args:
            root: Export directory
            destination_id: Notion page receiving the migrated tree
            client: Destination client
            transformer: Content transformer
            policy: Retry/skip policy shared with the materializer
            materializer: Block materializer (built from client and policy by default)
            asset_dirs: Directory names holding attachments, never walked
            page_limit: Maximum documents created per folder
            progress_callback: Called with a ProgressEvent after every document
            clock: Time source for the run duration
        """
        self._root = Path(root)
        self._destination_id = destination_id
        self._client = client
        self._transformer = transformer
        self._policy = policy or ErrorPolicy()
        self._materializer = materializer or BlockMaterializer(client, self._policy)
        self._asset_dirs: Set[str] = set(asset_dirs)
        self._page_limit = page_limit
        self._progress_callback = progress_callback
        self._clock = clock

        self.location_map = LocationMap()
        self.summary = MigrationSummary()
        self._done = 0
        self._total = 0

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        self._progress_callback = callback

    async def run(self) -> MigrationSummary:
        """Run both phases and return the migration summary.

        Raises:
            FatalConfigError: If the export root is not a directory
        """
        if not self._root.is_dir():
            raise FatalConfigError(f"Migration root is not a directory: {self._root}")

        started = self._clock()
        self.summary.documents_total = self.count_documents(self._root)
        logger.info(f"Found {self.summary.documents_total} document(s) under {self._root}")

        logger.info("Phase 1: creating empty documents")
        self._start_phase(self.summary.documents_total)
        await self.create_placeholders(self._root, self._destination_id)
        self.location_map.freeze()

        logger.info("Phase 2: writing content and rebuilding links")
        self._start_phase(self._count_populatable())
        await self.populate(self._root)

        self.summary.duration_seconds = self._clock() - started
        self.summary.transform = self._transformer.report
        self.summary.failures = list(self._policy.failures)
        logger.info(
            f"Migration finished: {self.summary.documents_populated} document(s) written, "
            f"{len(self.summary.failures)} remote failure(s)"
        )
        return self.summary

    def count_documents(self, directory: Path) -> int:
        """Count the documents created as leaves under ``directory``."""
        count = 0
        folder_files = self._folder_content_files(directory)
        for entry in self._entries(directory):
            if entry.is_dir():
                count += self.count_documents(entry)
            elif self._is_document(entry) and entry.name not in folder_files:
                count += 1
        return count

    async def create_placeholders(self, directory: Path, parent_id: str) -> None:
        """Phase 1: create folder and empty documents under ``parent_id``.

        Args:
            directory: Folder being walked
            parent_id: Notion id of the parent document
        """
        if directory == self._root:
            folder_id = parent_id
        else:
            folder_id = await self._create_folder(directory, parent_id)

        folder_files = self._folder_content_files(directory)
        created = 0
        tasks: List[Awaitable[None]] = []

        for entry in self._entries(directory):
            if entry.is_dir():
                tasks.append(self.create_placeholders(entry, folder_id))
            elif self._is_document(entry):
                if entry.name in folder_files:
                    logger.debug(f"Folder content file kept for its folder: {self._key(entry)}")
                    continue
                if created >= self._page_limit:
                    self.summary.documents_skipped += 1
                    logger.warning(
                        f"Page limit of {self._page_limit} reached in {self._key(directory)}, "
                        f"skipping {self._key(entry)}"
                    )
                    continue
                created += 1
                tasks.append(self._create_document(entry, folder_id))

        await self._gather(tasks, f"creating documents in {self._key(directory)}")

    async def populate(self, directory: Path) -> None:
        """Phase 2: write the content of every mapped document in ``directory``."""
        tasks: List[Awaitable[None]] = []
        for entry in self._entries(directory):
            if entry.is_dir():
                tasks.append(self.populate(entry))
            elif self._is_document(entry):
                mapping = self.location_map.get(self._key(entry))
                if mapping is not None:
                    tasks.append(self._populate_document(entry, mapping))

        await self._gather(tasks, f"writing documents in {self._key(directory)}")

    async def _create_folder(self, directory: Path, parent_id: str) -> str:
        key = f"{self._key(directory)}{MARKDOWN_SUFFIX}"
        try:
            ref = await self._policy.run(
                "create_folder_document",
                self._client.create_folder_document,
                directory.name,
                parent_id,
                source_path=key,
                destination_id=parent_id,
                reraise=True,
            )
        except RemoteWriteError:
            self.summary.folder_fallbacks += 1
            logger.warning(f"Folder {self._key(directory)} not created, using its parent instead")
            return parent_id

        self.location_map.add(PageMapping(key, ref.id, directory.name, ref.url))
        self.summary.folders_created += 1
        logger.info(f"Created folder document for {self._key(directory)}")
        return ref.id

    async def _create_document(self, path: Path, parent_id: str) -> None:
        key = self._key(path)
        title = path.stem
        ref = await self._policy.run(
            "create_empty_document",
            self._client.create_empty_document,
            title,
            parent_id,
            source_path=key,
            destination_id=parent_id,
        )
        if ref is None:
            self.summary.creation_failures += 1
        else:
            self.location_map.add(PageMapping(key, ref.id, title, ref.url))
            self.summary.documents_created += 1
            logger.info(f"Created empty document for {key}")
        self._advance(PHASE_CREATE)

    async def _populate_document(self, path: Path, mapping: PageMapping) -> None:
        key = mapping.source_path
        readable = True
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            readable = False
            self.summary.read_failures += 1
            logger.error(f"Cannot read {key}: {e}")
            blocks = [paragraph(CONVERSION_ERROR_TEMPLATE.format(error=e))]
        else:
            blocks = await self._transformer.transform(content, key, self.location_map)

        result = await self._materializer.materialize(blocks, mapping.destination_id, key)

        self.summary.append_calls += result.calls
        self.summary.failed_calls += result.failed_calls
        self.summary.blocks_written += result.blocks_written
        self.summary.skipped_blocks += result.skipped_blocks
        if readable:
            self.summary.documents_populated += 1
        logger.info(f"Wrote {result.blocks_written} block(s) to {key} in {result.calls} call(s)")
        self._advance(PHASE_POPULATE)

    async def _gather(self, tasks: List[Awaitable[None]], context: str) -> None:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, FatalConfigError):
                raise result
            if isinstance(result, Exception):
                logger.error(f"Unexpected error while {context}: {result}", exc_info=result)
            elif isinstance(result, BaseException):
                raise result

    def _start_phase(self, total: int) -> None:
        self._done = 0
        self._total = total

    def _advance(self, phase: str) -> None:
        self._done += 1
        percent = 100.0 if not self._total else min(100.0, self._done * 100.0 / self._total)
        event = ProgressEvent(
            phase=phase,
            done=self._done,
            total=self._total,
            percent=percent,
            throughput=self._client.rate_limiter.throughput(),
        )
        logger.debug(
            f"[{phase}] {event.done}/{event.total} ({event.percent:.1f}%), "
            f"{event.throughput:.2f} calls/s"
        )
        if self._progress_callback is not None:
            self._progress_callback(event)

    def _count_populatable(self) -> int:
        return sum(
            1 for key in self.location_map
            if (self._root / key.lstrip("/")).is_file()
        )

    def _entries(self, directory: Path) -> List[Path]:
        return sorted(
            entry for entry in directory.iterdir()
            if not (entry.is_dir() and entry.name in self._asset_dirs)
        )

    def _folder_content_files(self, directory: Path) -> Set[str]:
        return {
            f"{entry.name}{MARKDOWN_SUFFIX}"
            for entry in self._entries(directory) if entry.is_dir()
        }

    @staticmethod
    def _is_document(path: Path) -> bool:
        return path.is_file() and path.suffix == MARKDOWN_SUFFIX

    def _key(self, path: Path) -> str:
        relative = path.relative_to(self._root).as_posix()
        return "/" if relative == "." else f"/{relative}"
