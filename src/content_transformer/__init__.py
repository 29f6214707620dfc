"""Exported markdown to Notion block tree transformation.

Key classes:
    ContentTransformer: Runs the full per-document pipeline
    AttachmentRehomer: Rewrites attachment references to asset-store URLs
    LinkResolver: Rewrites internal links against the LocationMap
    MarkdownParser: mistune-based markdown to BlockNode parser
"""

from .attachments import AttachmentRehomer, DEFAULT_ASSET_DIRS
from .errors import TransformError
from .link_resolver import LinkResolver
from .markdown_parser import MarkdownParser
from .pipeline import ContentTransformer
from .tables import DEFAULT_MAX_TABLE_WIDTH

__all__ = [
    'AttachmentRehomer',
    'ContentTransformer',
    'DEFAULT_ASSET_DIRS',
    'DEFAULT_MAX_TABLE_WIDTH',
    'LinkResolver',
    'MarkdownParser',
    'TransformError',
]
