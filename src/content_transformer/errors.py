"""Typed exceptions for the content transformer."""

from typing import Optional

from src.notion_api.errors import MigrationError


class TransformError(MigrationError):
    """Raised when a document's markdown cannot be turned into blocks.

    Recovered by the pipeline: the document gets a single stub paragraph
    stating the failure instead of its real content.
    """

    def __init__(self, message: str, source_path: Optional[str] = None):
        if source_path:
            full_message = f"Cannot convert {source_path}: {message}"
        else:
            full_message = f"Cannot convert content: {message}"
        super().__init__(full_message)
        self.source_path = source_path
        self.original_message = message
