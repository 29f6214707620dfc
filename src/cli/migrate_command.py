"""Migrate command orchestration for CLI.

This module provides the MigrateCommand class that wires the migration
together: configuration, Notion credentials, rate limiter, destination
client, asset store, content transformer and tree walker. It runs the walk
on an asyncio event loop and translates fatal errors to exit codes.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from notion_client.errors import APIResponseError

from src.asset_store.s3_uploader import S3AssetStore
from src.cli.config import ConfigLoader
from src.cli.errors import CLIError
from src.cli.models import ExitCode, MigrationConfig
from src.cli.output import OutputHandler
from src.content_transformer.attachments import AttachmentRehomer
from src.content_transformer.link_resolver import LinkResolver
from src.content_transformer.pipeline import ContentTransformer
from src.notion_api.api_wrapper import DestinationClient
from src.notion_api.auth import Authenticator
from src.notion_api.errors import FatalConfigError, InvalidCredentialsError
from src.notion_api.error_policy import ErrorPolicy
from src.notion_api.rate_limiter import RateLimiter
from src.tree_walker.models import MigrationSummary
from src.tree_walker.walker import TreeWalker

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, RateLimiter], DestinationClient]


class MigrateCommand:
    """Orchestrates a complete migration run for the CLI.

    The workflow:
        1. Load configuration (YAML, environment, command-line overrides)
        2. Load the Notion token and check it against the API
        3. Walk the export twice (create documents, then write content)
        4. Print the summary and return an exit code

    Only configuration and credential problems produce a non-zero exit
    code; failed writes are logged and counted in the summary.

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> command = MigrateCommand(output_handler=output)
        >>> exit_code = command.run(config_path="migration.yaml")
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        """Initialize the migrate command.

        Args:
            output_handler: Terminal output (a default one is created)
            authenticator: Token loader (a default one is created)
            client_factory: Builds the destination client from a token and a rate limiter
        """
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.client_factory = client_factory or (
            lambda token, limiter: DestinationClient.from_token(token, rate_limiter=limiter)
        )

    def run(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> ExitCode:
        """Execute the migration.

        Args:
            config_path: Optional YAML configuration file
            overrides: Settings given on the command line

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            config = ConfigLoader.load(config_path, overrides)
            logger.info(
                f"Migrating {config.export_path} under Notion page {config.destination_page_id}"
            )
            self.output_handler.info(f"Export: {config.export_path}")
            self.output_handler.info(f"Destination page: {config.destination_page_id}")

            if not self.authenticator:
                self.authenticator = Authenticator()
            token = self.authenticator.get_token()

            summary = asyncio.run(self._migrate(config, token))
            self.output_handler.print_summary(summary)
            return ExitCode.SUCCESS

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info(
                "Check the NOTION_API_KEY environment variable and that the integration "
                "has access to the destination page"
            )
            return ExitCode.AUTH_ERROR

        except FatalConfigError as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"{e}")
            return ExitCode.CONFIG_ERROR

        except CLIError as e:
            logger.error(f"CLI error: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error during migration")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    async def _migrate(self, config: MigrationConfig, token: str) -> MigrationSummary:
        rate_limiter = RateLimiter(
            max_concurrent=config.scheduler.max_concurrent,
            max_starts_per_window=config.scheduler.max_starts_per_window,
            window_ms=config.scheduler.window_ms,
        )
        client = self.client_factory(token, rate_limiter)
        try:
            await self._verify_access(client)
            walker = TreeWalker(
                root=Path(config.export_path),
                destination_id=config.destination_page_id,
                client=client,
                transformer=self._build_transformer(config),
                policy=ErrorPolicy(),
                asset_dirs=config.asset_dirs,
                page_limit=config.page_limit,
            )
            with self.output_handler.migration_progress() as on_progress:
                walker.set_progress_callback(on_progress)
                return await walker.run()
        finally:
            await client.aclose()

    async def _verify_access(self, client: DestinationClient) -> None:
        try:
            with self.output_handler.spinner("Checking Notion access..."):
                await client.verify_access()
        except APIResponseError as e:
            raise InvalidCredentialsError(str(e)) from e
        logger.info("Notion token accepted")

    def _build_transformer(self, config: MigrationConfig) -> ContentTransformer:
        rehomer = None
        if config.assets.enabled:
            store = S3AssetStore(
                bucket=config.assets.bucket,
                region=config.assets.region or "",
                endpoint_url=config.assets.endpoint_url,
                mode=config.assets.mode,
                original_bucket=config.assets.original_bucket,
                public_url_template=config.assets.public_url_template,
            )
            rehomer = AttachmentRehomer(store, Path(config.export_path), config.asset_dirs)
        else:
            logger.warning("No asset bucket configured, attachments will not be rehomed")
            self.output_handler.warning("No asset bucket configured, attachments will not be rehomed")

        return ContentTransformer(
            rehomer=rehomer,
            link_resolver=LinkResolver(config.export_origin_domain),
            max_table_width=config.max_table_width,
        )
