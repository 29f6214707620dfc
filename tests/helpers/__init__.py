"""Test helper modules for migration testing.

This package provides utilities for unit and integration testing:
- fake_notion: In-memory Notion API recording the created tree
- export_builder: Write export directories from nested dictionaries
"""

from .export_builder import build_export
from .fake_notion import FakeNotion, FakeNotionError, rich_text_content, rich_text_links

__all__ = [
    'build_export',
    'FakeNotion',
    'FakeNotionError',
    'rich_text_content',
    'rich_text_links',
]
