"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError and carry enough context to tell the
user which setting to fix.
"""

from typing import Optional

from src.notion_api.errors import FatalConfigError, MigrationError


class CLIError(MigrationError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigError(CLIError, FatalConfigError):
    """Raised when configuration is missing or invalid."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ConfigNotFoundError(ConfigError):
    """Raised when an explicitly requested configuration file does not exist."""

    def __init__(self, config_path: str):
        super().__init__(f"Configuration file not found at {config_path}")
        self.config_path = config_path
