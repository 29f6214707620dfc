"""Pytest configuration and fixtures for integration tests.

Integration tests run whole migrations against the in-memory FakeNotion
through the real DestinationClient, RateLimiter and content pipeline.
"""

from pathlib import Path
from typing import Any, Dict

import pytest

from src.content_transformer.link_resolver import LinkResolver
from src.content_transformer.pipeline import ContentTransformer
from src.notion_api.api_wrapper import DestinationClient
from src.notion_api.rate_limiter import RateLimiter
from tests.helpers import FakeNotion, build_export


SAMPLE_EXPORT: Dict[str, Any] = {
    "Welcome.md": (
        "# Welcome\n"
        "\n"
        "Start with the [Guide](./docs/Guide.md) or ask @[Ann](mention://u/user/1).\n"
        "This [page](./nope.md) was deleted.\n"
    ),
    "docs.md": "Everything about the docs.\n",
    "docs": {
        "Guide.md": (
            "Back to [home](/Welcome.md), see also [notes](./Setup%20Notes.md).\n"
            "\n"
            "- level 1\n"
            "  - level 2\n"
            "    - level 3\n"
        ),
        "Setup Notes.md": (
            ":::warning Careful\n"
            "password: hunter2\n"
            ":::\n"
            "\n"
            "| a | b |\n"
            "|---|---|\n"
            "| 1 | 2 |\n"
        ),
    },
    "uploads": {"logo.png": b"\x89PNG"},
}


@pytest.fixture
def fake_notion() -> FakeNotion:
    """In-memory Notion with an empty destination page called 'root'."""
    return FakeNotion(root_id="root")


@pytest.fixture
def destination_client(fake_notion: FakeNotion) -> DestinationClient:
    """Real DestinationClient over FakeNotion, without the start window."""
    limiter = RateLimiter(max_concurrent=3, max_starts_per_window=None)
    return DestinationClient(fake_notion, rate_limiter=limiter)


@pytest.fixture
def transformer() -> ContentTransformer:
    return ContentTransformer(link_resolver=LinkResolver("wiki.example.com"))


@pytest.fixture
def sample_export(tmp_path: Path) -> Path:
    """Export with a folder, its content file, nested lists and cross links."""
    return build_export(tmp_path / "export", SAMPLE_EXPORT)
