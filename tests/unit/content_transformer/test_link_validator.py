"""Unit tests for content_transformer.link_validator module."""

import pytest

from src.blocks.models import BlockKind, BlockNode, TextRun
from src.content_transformer.link_validator import is_absolute_url, validate_links
from src.models.transform_report import TransformReport


class TestIsAbsoluteUrl:
    """Test cases for is_absolute_url function."""

    @pytest.mark.parametrize("url", [
        "https://www.notion.so/abc",
        "http://example.com",
        "ftp://files.example.com/a",
        "mailto:ops@example.com",
        "tel:+33123456789",
    ])
    def test_absolute(self, url):
        assert is_absolute_url(url)

    @pytest.mark.parametrize("url", [
        None, "", "./a.md", "/docs/a.md", "uploads/a.png", "https://", "javascript:alert(1)",
    ])
    def test_not_absolute(self, url):
        assert not is_absolute_url(url)


class TestValidateLinks:
    """Test cases for validate_links function."""

    def test_relative_links_are_stripped(self):
        """Non-absolute run links should be removed, keeping the text."""
        report = TransformReport()
        block = BlockNode(kind=BlockKind.PARAGRAPH, rich_text=[
            TextRun("ok", link="https://example.com"),
            TextRun("bad", link="./missing.md"),
        ])

        [result] = validate_links([block], report)

        assert result.rich_text[0].link == "https://example.com"
        assert result.rich_text[1].link is None
        assert result.rich_text[1].content == "bad"
        assert report.links_dropped == 1

    def test_table_cells_and_children_are_checked(self):
        """Links in table cells and nested blocks should be validated."""
        cell_row = BlockNode(kind=BlockKind.TABLE_ROW, cells=[[TextRun("c", link="/x")]])
        tbl = BlockNode(kind=BlockKind.TABLE, table_width=1, children=[cell_row])

        [result] = validate_links([tbl])

        assert result.children[0].cells[0][0].link is None

    def test_relative_media_becomes_paragraph(self):
        """Media blocks without an absolute URL should become text."""
        image = BlockNode(kind=BlockKind.IMAGE, url="uploads/a.png", caption=[TextRun("logo")])

        [result] = validate_links([image])

        assert result.kind is BlockKind.PARAGRAPH
        assert result.plain_text == "logo (attachment not migrated: uploads/a.png)"

    def test_absolute_media_is_kept(self):
        """Media blocks with an absolute URL should be kept."""
        image = BlockNode(kind=BlockKind.IMAGE, url="https://cdn.example.com/a.png")
        [result] = validate_links([image])
        assert result.kind is BlockKind.IMAGE
