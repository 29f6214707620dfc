"""Unit tests for notion_api.api_wrapper module."""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from src.blocks.models import BlockKind, BlockNode, paragraph
from src.notion_api.api_wrapper import BATCH_LIMIT, DestinationClient, DocumentRef, FOLDER_ICON
from src.notion_api.errors import BatchTooLargeError
from src.notion_api.rate_limiter import RateLimiter


def create_mock_notion():
    """Create a mock notion-client AsyncClient."""
    notion = Mock()
    notion.pages.create = AsyncMock(
        return_value={"id": "page-1", "url": "https://www.notion.so/page-1"}
    )
    notion.blocks.children.append = AsyncMock(
        return_value={"results": [{"id": "b1"}, {"id": "b2"}]}
    )
    notion.users.me = AsyncMock(return_value={"object": "user", "type": "bot"})
    notion.aclose = AsyncMock()
    return notion


class TestDestinationClient:
    """Test cases for DestinationClient class."""

    @pytest.mark.asyncio
    async def test_create_folder_document_sets_icon_and_title(self):
        """create_folder_document should create a page with the folder icon."""
        notion = create_mock_notion()
        client = DestinationClient(notion)

        ref = await client.create_folder_document("docs", "root")

        assert ref == DocumentRef(id="page-1", url="https://www.notion.so/page-1")
        kwargs = notion.pages.create.await_args.kwargs
        assert kwargs["parent"] == {"page_id": "root"}
        assert kwargs["icon"] == {"type": "emoji", "emoji": FOLDER_ICON}
        assert kwargs["properties"]["title"]["title"][0]["text"]["content"] == "docs"

    @pytest.mark.asyncio
    async def test_create_empty_document_has_no_icon(self):
        """create_empty_document should create a titled page with no content."""
        notion = create_mock_notion()
        client = DestinationClient(notion)

        await client.create_empty_document("intro", "folder-1")

        kwargs = notion.pages.create.await_args.kwargs
        assert "icon" not in kwargs
        assert "children" not in kwargs
        assert kwargs["parent"] == {"page_id": "folder-1"}

    @pytest.mark.asyncio
    async def test_append_blocks_serializes_and_returns_ids(self):
        """append_blocks should send serialized blocks and return created ids."""
        notion = create_mock_notion()
        client = DestinationClient(notion)

        ids = await client.append_blocks("page-1", [paragraph("one"), paragraph("two")])

        assert ids == ["b1", "b2"]
        kwargs = notion.blocks.children.append.await_args.kwargs
        assert kwargs["block_id"] == "page-1"
        assert [child["type"] for child in kwargs["children"]] == ["paragraph", "paragraph"]

    @pytest.mark.asyncio
    async def test_append_blocks_refuses_oversized_batch(self):
        """append_blocks should refuse more than 100 blocks without calling the API."""
        notion = create_mock_notion()
        client = DestinationClient(notion)
        blocks = [paragraph(str(i)) for i in range(BATCH_LIMIT + 1)]

        with pytest.raises(BatchTooLargeError):
            await client.append_blocks("page-1", blocks)

        notion.blocks.children.append.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_calls_are_keyed_by_write_target(self):
        """Each operation should be submitted to the limiter under its target id."""
        notion = create_mock_notion()
        limiter = RateLimiter()
        client = DestinationClient(notion, rate_limiter=limiter)

        with patch.object(limiter, "submit", wraps=limiter.submit) as submit:
            await client.create_empty_document("a", "parent-1")
            await client.append_blocks("page-9", [BlockNode(kind=BlockKind.DIVIDER)])

        assert [call.args[0] for call in submit.call_args_list] == ["parent-1", "page-9"]

    @pytest.mark.asyncio
    async def test_remote_errors_propagate_unmodified(self):
        """Remote failures should reach the caller as raised by notion-client."""
        notion = create_mock_notion()
        error = RuntimeError("validation_error")
        notion.pages.create.side_effect = error
        client = DestinationClient(notion)

        with pytest.raises(RuntimeError) as exc_info:
            await client.create_empty_document("a", "parent-1")

        assert exc_info.value is error
        assert notion.pages.create.await_count == 1

    @pytest.mark.asyncio
    async def test_verify_access_and_close(self):
        """verify_access should call users.me and aclose should close the client."""
        notion = create_mock_notion()
        client = DestinationClient(notion)

        await client.verify_access()
        await client.aclose()

        notion.users.me.assert_awaited_once()
        notion.aclose.assert_awaited_once()

    @patch('src.notion_api.api_wrapper.AsyncClient')
    def test_from_token_builds_async_client(self, mock_async_client):
        """from_token should authenticate the AsyncClient with the token."""
        client = DestinationClient.from_token("secret")

        mock_async_client.assert_called_once_with(auth="secret")
        assert isinstance(client.rate_limiter, RateLimiter)
