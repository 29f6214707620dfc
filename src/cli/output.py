"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, a per-phase progress bar fed by the walker's progress
events, and the final migration summary. Supports verbosity levels and the
--no-color flag.
"""

from contextlib import contextmanager
from typing import Callable, Dict, Iterator

from rich.console import Console
from rich.live import Live
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.spinner import Spinner

from src.tree_walker.models import MigrationSummary, PHASE_CREATE, PHASE_POPULATE, ProgressEvent

PHASE_LABELS = {
    PHASE_CREATE: "Creating documents",
    PHASE_POPULATE: "Writing content",
}


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Migration completed")
        >>> with handler.migration_progress() as on_progress:
        ...     summary = await walker.run()
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single operations.

        Args:
            message: Message to display with spinner

        Example:
            >>> with handler.spinner("Checking Notion access..."):
            ...     client.verify_access()
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    @contextmanager
    def migration_progress(self) -> Iterator[Callable[[ProgressEvent], None]]:
        """Display one progress bar per migration phase.

        Yields:
            Callback to pass to the TreeWalker as ``progress_callback``
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("{task.fields[throughput]:.1f} calls/s"),
            TimeRemainingColumn(),
            console=self.console,
        )
        tasks: Dict[str, TaskID] = {}

        def on_progress(event: ProgressEvent) -> None:
            if event.phase not in tasks:
                tasks[event.phase] = progress.add_task(
                    PHASE_LABELS.get(event.phase, event.phase),
                    total=event.total,
                    throughput=0.0,
                )
            progress.update(
                tasks[event.phase],
                completed=event.done,
                total=event.total,
                throughput=event.throughput,
            )

        with progress:
            yield on_progress

    def print_summary(self, summary: MigrationSummary) -> None:
        """Display the migration summary with color coding.

        Args:
            summary: Counters returned by the walker
        """
        report = summary.transform
        self.console.print("\n[bold]Migration Summary:[/bold]")
        self.console.print(f"  [green]+[/green] Folders created: {summary.folders_created}")
        self.console.print(
            f"  [green]+[/green] Documents created: {summary.documents_created}"
            f" of {summary.documents_total}"
        )
        self.console.print(f"  [green]↑[/green] Documents written: {summary.documents_populated}")
        self.console.print(
            f"  [dim]─[/dim] Blocks written: {summary.blocks_written}"
            f" in {summary.append_calls} call(s)"
        )
        self.console.print(
            f"  [dim]─[/dim] Links rebuilt: {report.links_rebuilt},"
            f" attachments rehomed: {report.assets_rehomed}"
        )

        problems = [
            ("Folders created under their parent", summary.folder_fallbacks),
            ("Documents not created", summary.creation_failures),
            ("Documents over the page limit", summary.documents_skipped),
            ("Unreadable documents", summary.read_failures),
            ("Failed block appends", summary.failed_calls),
            ("Blocks skipped", summary.skipped_blocks),
            ("Documents not converted", report.conversion_failures),
            ("Links not rebuilt", report.links_unresolved),
            ("Attachments not rehomed", report.asset_failures),
            ("Possible passwords", report.password_warnings),
        ]
        for label, count in problems:
            if count > 0:
                self.console.print(f"  [yellow]⚠[/yellow] {label}: {count}")

        duration = f"{summary.duration_seconds:.1f}s"
        if summary.has_failures:
            self.console.print(
                f"\n[yellow]Migration completed with failures in {duration} (see logs)[/yellow]"
            )
        else:
            self.console.print(f"\n[green]Migration completed successfully in {duration}[/green]")
