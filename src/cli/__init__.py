"""Command-line interface for the Outline to Notion migration.

This package provides the `outline-to-notion` CLI tool that loads the
migration configuration, checks Notion access and runs the two-phase walk
with progress indication and a final summary.
"""

from .migrate_command import MigrateCommand
from .config import ConfigLoader
from .models import ExitCode, MigrationConfig, SchedulerConfig, AssetConfig
from .errors import CLIError, ConfigError, ConfigNotFoundError

__all__ = [
    'MigrateCommand',
    'ConfigLoader',
    'ExitCode',
    'MigrationConfig',
    'SchedulerConfig',
    'AssetConfig',
    'CLIError',
    'ConfigError',
    'ConfigNotFoundError',
]
