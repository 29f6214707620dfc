"""Typed exceptions for the asset store."""

from typing import Optional

from src.notion_api.errors import MigrationError


class AssetError(MigrationError):
    """Raised when an attachment cannot be rehomed to a durable URL.

    Recovered locally by the content transformer: the original reference is
    left in place and a warning is logged.
    """

    def __init__(self, asset_path: str, reason: Optional[str] = None):
        message = f"Asset {asset_path} could not be rehomed"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.asset_path = asset_path
        self.reason = reason
