"""Notion API access for the outline-to-notion migrator.

This package provides the rate-limited destination client, the scheduler it
submits to, and the retry/skip policy applied to every remote write.
"""

from .errors import (
    MigrationError,
    FatalConfigError,
    InvalidCredentialsError,
    NotionError,
    RemoteWriteError,
    APIAccessError,
    BatchTooLargeError,
)

__all__ = [
    "MigrationError",
    "FatalConfigError",
    "InvalidCredentialsError",
    "NotionError",
    "RemoteWriteError",
    "APIAccessError",
    "BatchTooLargeError",
]
