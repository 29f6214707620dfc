"""Typed exception hierarchy for migration errors.

This module defines the root of the exception hierarchy used across the
migrator plus the errors raised at the Notion API boundary. All exceptions
inherit from MigrationError for easy catching and include descriptive
messages with context to help with debugging.
"""

from typing import Optional


class MigrationError(Exception):
    """Base exception for all outline-to-notion errors.

    Use this to catch any application-level error from the migration tool.
    """
    pass


class FatalConfigError(MigrationError):
    """Raised when required configuration is missing or invalid.

    This is the only error class that halts a run: it is surfaced before
    the tree walk starts.
    """
    pass


class InvalidCredentialsError(FatalConfigError):
    """Raised when the Notion integration token is missing or rejected."""

    def __init__(self, reason: str = "NOTION_API_KEY is not set"):
        super().__init__(f"Notion credentials are invalid: {reason}")
        self.reason = reason


class NotionError(MigrationError):
    """Base exception for all Notion API related errors."""
    pass


class RemoteWriteError(NotionError):
    """Raised when a document creation or block append failed remotely.

    Wraps the original exception so callers that decide a fallback can
    still inspect what went wrong.
    """

    def __init__(
        self,
        operation: str,
        source_path: Optional[str] = None,
        destination_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        message = f"Remote operation '{operation}' failed"
        if source_path:
            message += f" for {source_path}"
        if destination_id:
            message += f" (destination: {destination_id})"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.operation = operation
        self.source_path = source_path
        self.destination_id = destination_id
        self.cause = cause


class APIAccessError(NotionError):
    """Raised when the API keeps rate limiting after all retries."""

    def __init__(self, message: str = "Notion API failure (after 3 retries)"):
        super().__init__(message)


class BatchTooLargeError(NotionError):
    """Raised when a block batch exceeds what one append call accepts."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Block batch of {size} exceeds the append limit of {limit}"
        )
        self.size = size
        self.limit = limit
