"""Main CLI entry point for the outline-to-notion command.

This module provides the Typer application that serves as the entry point
for the outline-to-notion command-line tool. A single command migrates an
Outline markdown export under a Notion page.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from src.cli.migrate_command import MigrateCommand
from src.cli.models import ExitCode
from src.cli.output import OutputHandler

__version__ = "0.1.0"

app = typer.Typer(
    name="outline-to-notion",
    help="""Migrate an Outline markdown export into Notion.

QUICK START:
  outline-to-notion --root ./export --destination <notion_page_id>
  outline-to-notion --config migration.yaml

Required environment variables:
  NOTION_API_KEY              - Notion integration token
  AWS_S3_BUCKET, AWS_REGION   - Bucket attachments are rehomed to (optional)""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

# Module logger
logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"outline-to-notion_{timestamp}.log"

        # Files keep the logger name for tracing
        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@app.command()
def main_command(
    root: Optional[str] = typer.Option(
        None,
        "--root",
        help="Directory of the unpacked Outline export (or MIGRATION_ROOT)",
        metavar="DIR",
    ),
    destination: Optional[str] = typer.Option(
        None,
        "--destination",
        help="Notion page id receiving the export (or NOTION_DESTINATION_PAGE_ID)",
        metavar="PAGE_ID",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="YAML configuration file",
        metavar="FILE",
    ),
    origin_domain: Optional[str] = typer.Option(
        None,
        "--origin-domain",
        help="Host of the Outline instance, to rebuild absolute links (or EXPORT_ORIGIN_DOMAIN)",
        metavar="HOST",
    ),
    asset_mode: Optional[str] = typer.Option(
        None,
        "--asset-mode",
        help="'upload' to copy attachments to the bucket, 'existing' to reference them in place",
    ),
    max_concurrent: Optional[int] = typer.Option(
        None,
        "--max-concurrent",
        help="Maximum concurrent Notion calls (default 3)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Migrate an Outline markdown export into Notion.

    \b
    The migration runs in two phases:
      1. every folder and document is created empty under the destination page
      2. every document is filled in, with links to other documents rebuilt

    \b
    EXAMPLE:
      outline-to-notion --root ./export --destination 0123456789abcdef0123456789abcdef -v 1
    """
    if version:
        typer.echo(f"outline-to-notion version {__version__}")
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    overrides = {
        'export_path': root,
        'destination_page_id': destination,
        'export_origin_domain': origin_domain,
        'assets.mode': asset_mode,
        'scheduler.max_concurrent': max_concurrent,
    }
    command = MigrateCommand(output_handler=output)
    exit_code = command.run(config_path=config, overrides=overrides)

    raise typer.Exit(int(exit_code))


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
