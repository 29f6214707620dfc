"""Unit tests for content_transformer.link_resolver module."""

import pytest

from src.content_transformer.link_resolver import (
    LinkResolver,
    find_mapping,
    normalize_link_target,
)
from src.models.page_mapping import LocationMap, PageMapping
from src.models.transform_report import TransformReport


@pytest.fixture
def location_map():
    location_map = LocationMap()
    for path, page_id in [
        ("/docs.md", "folder-docs"),
        ("/docs/index.md", "page-index"),
        ("/docs/advanced.md", "page-advanced"),
        ("/guide/Getting Started.md", "page-start"),
    ]:
        location_map.add(PageMapping(
            source_path=path,
            destination_id=page_id,
            title=path.rsplit("/", 1)[-1][:-3],
            url=f"https://www.notion.so/{page_id}",
        ))
    location_map.freeze()
    return location_map


class TestNormalizeLinkTarget:
    """Test cases for normalize_link_target function."""

    def test_relative_target_joins_document_directory(self):
        """./ targets should resolve against the linking document."""
        assert normalize_link_target("./advanced", "/docs/index.md", None) == "/docs/advanced"

    def test_parent_segments_are_collapsed(self):
        """Dot segments should be normalized."""
        assert normalize_link_target("./../guide/a.md", "/docs/index.md", None) == "/guide/a.md"

    def test_origin_domain_url_keeps_path(self):
        """URLs on the origin domain should be reduced to their path."""
        url = "https://wiki.example.com/docs/advanced.md"
        assert normalize_link_target(url, "/x.md", "wiki.example.com") == "/docs/advanced.md"

    def test_external_url_is_returned_unchanged(self):
        """Other targets should be returned as-is."""
        assert normalize_link_target("https://other.org/a", "/x.md", None) == "https://other.org/a"


class TestFindMapping:
    """Test cases for find_mapping function."""

    def test_exact_match_appends_md(self, location_map):
        """A suffix-less path should match the .md document."""
        assert find_mapping("/docs/advanced", location_map).destination_id == "page-advanced"

    def test_exact_match_is_percent_decoded(self, location_map):
        """Encoded paths should match their decoded key."""
        mapping = find_mapping("/guide/Getting%20Started.md", location_map)
        assert mapping.destination_id == "page-start"

    def test_encoded_file_name_fallback(self, location_map):
        """An encoded file name anywhere in the target should match."""
        mapping = find_mapping("/moved/elsewhere/Getting%20Started.md", location_map)
        assert mapping.destination_id == "page-start"

    def test_no_match_returns_none(self, location_map):
        """Unknown targets should not match."""
        assert find_mapping("/docs/missing", location_map) is None


class TestLinkResolver:
    """Test cases for LinkResolver class."""

    def test_relative_link_is_rewritten(self, location_map):
        """[text](./advanced) should point at the destination URL."""
        report = TransformReport()

        result = LinkResolver().resolve(
            "See [Advanced](./advanced).", "/docs/index.md", location_map, report
        )

        assert result == "See [Advanced](https://www.notion.so/page-advanced)."
        assert report.links_rebuilt == 1

    def test_fragment_is_ignored_for_lookup(self, location_map):
        """#fragments should not prevent resolution."""
        result = LinkResolver().resolve(
            "[Setup](./advanced#setup)", "/docs/index.md", location_map
        )
        assert result == "[Setup](https://www.notion.so/page-advanced)"

    def test_folder_link_points_at_folder_document(self, location_map):
        """A link to a folder's content file should use the folder document."""
        result = LinkResolver().resolve("[Docs](/docs.md)", "/guide/a.md", location_map)
        assert result == "[Docs](https://www.notion.so/folder-docs)"

    def test_unmapped_link_becomes_fallback_text(self, location_map):
        """Unresolvable internal links should become descriptive text."""
        report = TransformReport()

        result = LinkResolver().resolve(
            "[Gone](./missing)", "/docs/index.md", location_map, report
        )

        assert result == "Gone - ./missing - link could not be rebuilt during migration"
        assert report.links_unresolved == 1

    def test_origin_domain_links_are_internal(self, location_map):
        """Absolute links to the origin domain should be rewritten."""
        resolver = LinkResolver(origin_domain="wiki.example.com")

        result = resolver.resolve(
            "[Adv](https://wiki.example.com/docs/advanced.md)", "/x.md", location_map
        )

        assert result == "[Adv](https://www.notion.so/page-advanced)"

    def test_external_links_and_images_are_untouched(self, location_map):
        """External links and image references should be left alone."""
        content = "[Site](https://example.org) ![pic](./advanced)"
        assert LinkResolver().resolve(content, "/docs/index.md", location_map) == content

    def test_is_internal(self):
        """is_internal should recognise relative, rooted and origin links."""
        resolver = LinkResolver(origin_domain="wiki.example.com")
        assert resolver.is_internal("./a")
        assert resolver.is_internal("/a")
        assert resolver.is_internal("https://wiki.example.com/doc/a")
        assert not resolver.is_internal("https://example.org")
        assert not LinkResolver().is_internal("https://wiki.example.com/doc/a")

    def test_links_in_fenced_code_are_untouched(self, location_map):
        """Link syntax inside fenced code should be kept as written."""
        report = TransformReport()
        content = "[Adv](./advanced)\n```md\n[x](./y)\n```\n[Gone](./missing)"

        result = LinkResolver().resolve(content, "/docs/index.md", location_map, report)

        assert result.split("\n") == [
            "[Adv](https://www.notion.so/page-advanced)",
            "```md",
            "[x](./y)",
            "```",
            "Gone - ./missing - link could not be rebuilt during migration",
        ]
        assert report.links_rebuilt == 1
        assert report.links_unresolved == 1
