"""Destination client for the Notion API.

This module wraps notion-client's AsyncClient behind the three write
operations the migration needs. Every call is submitted to the RateLimiter
keyed by the id it writes under, so writes against one page never interleave.
Remote failures are surfaced unmodified; retrying is the caller's job
(see retry_logic and error_policy).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from notion_client import AsyncClient

from ..blocks.models import BlockNode
from ..blocks.serializer import to_notion
from .errors import BatchTooLargeError
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Notion accepts at most this many blocks per append request
BATCH_LIMIT = 100

FOLDER_ICON = "📁"


@dataclass(frozen=True)
class DocumentRef:
    """Identity of a created Notion page.

    Attributes:
        id: Notion page id
        url: Canonical page URL
    """
    id: str
    url: str


class DestinationClient:
    """Rate-limited façade over Notion page creation and block appends.

    Example:
        >>> client = DestinationClient.from_token(token)
        >>> folder = await client.create_folder_document("docs", root_id)
        >>> ids = await client.append_blocks(folder.id, blocks)
    """

    def __init__(
        self,
        client: AsyncClient,
        rate_limiter: Optional[RateLimiter] = None,
        batch_limit: int = BATCH_LIMIT,
    ):
        """Initialize the destination client.

        Args:
            client: Authenticated notion-client AsyncClient
            rate_limiter: Scheduler all calls go through (a default one is created)
            batch_limit: Maximum blocks per append call
        """
        self._client = client
        self._rate_limiter = rate_limiter or RateLimiter()
        self._batch_limit = batch_limit

    @classmethod
    def from_token(
        cls,
        token: str,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> 'DestinationClient':
        """Create a client authenticated with an integration token."""
        return cls(AsyncClient(auth=token), rate_limiter=rate_limiter)

    @property
    def rate_limiter(self) -> RateLimiter:
        """The scheduler this client submits to."""
        return self._rate_limiter

    async def create_folder_document(self, name: str, parent_id: str) -> DocumentRef:
        """Create the page standing for a source folder.

        Args:
            name: Folder name, used as page title
            parent_id: Parent page id

        Returns:
            DocumentRef of the created page
        """
        logger.debug(f"Notion API: POST /pages (folder '{name}' under {parent_id})")
        page = await self._rate_limiter.submit(
            parent_id,
            lambda: self._client.pages.create(
                parent={"page_id": parent_id},
                icon={"type": "emoji", "emoji": FOLDER_ICON},
                properties=_title_property(name),
            ),
        )
        return _document_ref(page)

    async def create_empty_document(self, title: str, parent_id: str) -> DocumentRef:
        """Create an empty page for a source document.

        Args:
            title: Page title
            parent_id: Parent page id

        Returns:
            DocumentRef of the created page
        """
        logger.debug(f"Notion API: POST /pages ('{title}' under {parent_id})")
        page = await self._rate_limiter.submit(
            parent_id,
            lambda: self._client.pages.create(
                parent={"page_id": parent_id},
                properties=_title_property(title),
            ),
        )
        return _document_ref(page)

    async def append_blocks(self, document_id: str, blocks: Sequence[BlockNode]) -> List[str]:
        """Append a batch of blocks under a page or block.

        Args:
            document_id: Page or block id receiving the children
            blocks: At most ``batch_limit`` blocks

        Returns:
            Ids of the created top-level blocks, in order

        Raises:
            BatchTooLargeError: If the batch exceeds the append limit
        """
        if len(blocks) > self._batch_limit:
            raise BatchTooLargeError(len(blocks), self._batch_limit)

        children = [to_notion(block) for block in blocks]
        logger.debug(f"Notion API: PATCH /blocks/{document_id}/children ({len(children)} block(s))")
        response = await self._rate_limiter.submit(
            document_id,
            lambda: self._client.blocks.children.append(
                block_id=document_id,
                children=children,
            ),
        )
        return [result["id"] for result in response.get("results", [])]

    async def verify_access(self) -> Dict[str, Any]:
        """Check the token by fetching the integration's bot user."""
        return await self._client.users.me()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


def _title_property(title: str) -> Dict[str, Any]:
    return {"title": {"title": [{"text": {"content": title}}]}}


def _document_ref(page: Dict[str, Any]) -> DocumentRef:
    return DocumentRef(id=page["id"], url=page.get("url", ""))
