"""Data models for CLI operations.

This module defines the exit codes of the command and the configuration
objects produced by the ConfigLoader.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional

from src.asset_store.s3_uploader import DEFAULT_PUBLIC_URL_TEMPLATE
from src.content_transformer.attachments import DEFAULT_ASSET_DIRS
from src.content_transformer.tables import DEFAULT_MAX_TABLE_WIDTH
from src.tree_walker.walker import DEFAULT_PAGE_LIMIT


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Migration ran to its end (individual failures are logged)
    - GENERAL_ERROR (1): Unexpected error
    - CONFIG_ERROR (2): Missing or invalid configuration
    - AUTH_ERROR (3): Notion token missing or rejected

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIG_ERROR = 2
    AUTH_ERROR = 3


@dataclass
class SchedulerConfig:
    """Rate limiter settings.

    Attributes:
        max_concurrent: Maximum in-flight Notion calls
        max_starts_per_window: Maximum call starts per window, None to disable
        window_ms: Sliding window length in milliseconds
    """
    max_concurrent: int = 3
    max_starts_per_window: Optional[int] = 10
    window_ms: int = 10000


@dataclass
class AssetConfig:
    """Asset store settings.

    Attributes:
        mode: "upload" to copy attachments to the bucket, "existing" to
            reference objects already in ``original_bucket``
        bucket: Destination bucket, None disables attachment rehoming
        region: Bucket region
        endpoint_url: Custom S3-compatible endpoint
        original_bucket: Bucket holding the export's attachments ("existing" mode)
        public_url_template: Format string with {bucket}, {region} and {key}
    """
    mode: str = "upload"
    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    original_bucket: Optional[str] = None
    public_url_template: str = DEFAULT_PUBLIC_URL_TEMPLATE

    @property
    def enabled(self) -> bool:
        return bool(self.bucket)


@dataclass
class MigrationConfig:
    """Complete configuration of a migration run.

    Attributes:
        export_path: Directory holding the unpacked export
        destination_page_id: Notion page receiving the migrated tree
        export_origin_domain: Host the export was produced from (for absolute links)
        asset_dirs: Directory names holding attachments
        page_limit: Maximum documents created per folder
        max_table_width: Maximum table columns kept
        scheduler: Rate limiter settings
        assets: Asset store settings
    """
    export_path: str
    destination_page_id: str
    export_origin_domain: Optional[str] = None
    asset_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_ASSET_DIRS))
    page_limit: int = DEFAULT_PAGE_LIMIT
    max_table_width: int = DEFAULT_MAX_TABLE_WIDTH
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
