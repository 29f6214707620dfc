"""Integration tests for the Outline to Notion migration.

These tests run complete migrations over export directories written to
temporary folders. The Notion API is replaced by the in-memory FakeNotion
from tests.helpers; everything else (rate limiter, destination client,
content pipeline, materializer, tree walker, CLI command) is real.

Test Coverage:
- Two-phase walk: folders, documents, folder content files, page limit
- Link rebuilding across documents and fallback text for missing targets
- Deep block trees split across append calls
- Failure handling: folder fallback, skipped documents
- Full command run from a YAML configuration
"""
