"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

# notion-client and httpx log every request at DEBUG/INFO; keep test output
# focused on the migrator's own loggers.
logging.getLogger("notion_client").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
