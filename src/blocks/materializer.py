"""Materialize a block tree into a Notion page.

Notion takes flat batches of at most 100 sibling blocks per append, and
accepts at most two levels of nesting inside one request. A block must exist
(and have an id) before children can be appended below it.

Algorithm:
    The tree depth is computed once at the root. Up to depth 2 every block is
    sent as-is, in batches of 100 against the page id. Beyond that the tree
    is split at every level: childless blocks (and tables, whose rows must be
    sent with them) accumulate in a pending batch; a block with children
    flushes the batch, is appended alone without its children, and its
    returned id becomes the target for its own children, recursively.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..notion_api.api_wrapper import BATCH_LIMIT, DestinationClient
from ..notion_api.error_policy import ErrorPolicy
from .models import BlockKind, BlockNode, count_blocks, tree_depth

logger = logging.getLogger(__name__)

# Deepest tree Notion accepts in a single append request
MAX_INLINE_DEPTH = 2


@dataclass
class MaterializeResult:
    """Outcome of materializing one document.

    Attributes:
        calls: Append calls issued
        blocks_written: Blocks (children included) successfully sent
        failed_calls: Append calls that failed and were skipped
        skipped_blocks: Blocks never sent because their parent failed
    """
    calls: int = 0
    blocks_written: int = 0
    failed_calls: int = 0
    skipped_blocks: int = 0


class BlockMaterializer:
    """Writes block trees under Notion pages through the destination client.

    Failed appends are logged and skipped by the error policy; the rest of
    the document is still written.

    Example:
        >>> materializer = BlockMaterializer(client, ErrorPolicy())
        >>> result = await materializer.materialize(blocks, page_id)
    """

    def __init__(
        self,
        client: DestinationClient,
        policy: ErrorPolicy,
        batch_limit: int = BATCH_LIMIT,
    ):
        self._client = client
        self._policy = policy
        self._batch_limit = batch_limit

    async def materialize(
        self,
        blocks: Sequence[BlockNode],
        document_id: str,
        source_path: Optional[str] = None,
    ) -> MaterializeResult:
        """Write ``blocks`` under ``document_id`` in document order.

        Args:
            blocks: Top-level blocks of the document
            document_id: Notion page id receiving the content
            source_path: Source document, for log context

        Returns:
            MaterializeResult with call and block counters
        """
        result = MaterializeResult()
        if not blocks:
            return result

        depth = tree_depth(blocks)
        logger.debug(
            f"Materializing {count_blocks(blocks)} block(s) of depth {depth} "
            f"into {document_id}"
        )

        if depth <= MAX_INLINE_DEPTH:
            for start in range(0, len(blocks), self._batch_limit):
                await self._append(
                    document_id, list(blocks[start:start + self._batch_limit]),
                    result, source_path
                )
        else:
            await self._materialize_split(list(blocks), document_id, result, source_path)

        return result

    async def _materialize_split(
        self,
        blocks: List[BlockNode],
        parent_id: str,
        result: MaterializeResult,
        source_path: Optional[str],
    ) -> None:
        pending: List[BlockNode] = []

        for block in blocks:
            if not block.children or block.kind is BlockKind.TABLE:
                pending.append(block)
                if len(pending) >= self._batch_limit:
                    await self._append(parent_id, pending, result, source_path)
                    pending = []
                continue

            if pending:
                await self._append(parent_id, pending, result, source_path)
                pending = []

            created = await self._append(
                parent_id, [block.without_children()], result, source_path
            )
            if not created:
                skipped = count_blocks(block.children)
                result.skipped_blocks += skipped
                logger.warning(
                    f"Skipping {skipped} nested block(s) of {source_path or parent_id}: "
                    f"parent block was not created"
                )
                continue

            await self._materialize_split(block.children, created[0], result, source_path)

        if pending:
            await self._append(parent_id, pending, result, source_path)

    async def _append(
        self,
        parent_id: str,
        batch: List[BlockNode],
        result: MaterializeResult,
        source_path: Optional[str],
    ) -> Optional[List[str]]:
        result.calls += 1
        ids = await self._policy.run(
            "append_blocks",
            self._client.append_blocks,
            parent_id,
            batch,
            source_path=source_path,
            destination_id=parent_id,
        )
        if ids is None:
            result.failed_calls += 1
            return None
        result.blocks_written += count_blocks(batch)
        return ids
