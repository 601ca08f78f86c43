"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
Uses Rich for progress bars, spinners, trees, colored output and formatted
text. Supports verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeRemainingColumn,
)
from rich.spinner import Spinner
from rich.live import Live
from rich.tree import Tree

from src.content_store.models import EntryKind
from src.mutations.models import MutationResult
from src.tree.models import Node


class OutputHandler:
    """Handles all terminal output using Rich library.

    Provides methods for displaying messages, progress bars, spinners,
    trees and summaries with color coding and verbosity level control.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Operation completed")
        >>> with handler.spinner("Listing tree..."):
        ...     # Do work
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(message, markup=False)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single operations.

        Args:
            message: Message to display with spinner

        Yields:
            None
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    @contextmanager
    def progress_bar(self, total: int, description: str = "Processing") -> Iterator[Progress]:
        """Display progress bar for multi-item operations.

        Args:
            total: Total number of items to process
            description: Description text for progress bar

        Yields:
            Progress instance for updating progress

        Example:
            >>> with handler.progress_bar(10, "Deleting") as progress:
            ...     task = progress.add_task("Deleting", total=10)
            ...     for i in range(10):
            ...         progress.update(task, advance=1)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        with progress:
            yield progress

    def print_error(self, payload: Dict[str, Any]) -> None:
        """Display an error payload as ``✗ <kind>: <message>`` plus its paths."""
        self.error(f"{payload['kind']}: {payload['message']}")
        for path in payload.get("paths") or []:
            self.console.print(f"  • {escape(path)}")

    def print_tree(self, root: Node) -> None:
        """Display a materialized tree."""
        label = root.path or "/"
        tree = Tree(f"[bold]{escape(label)}[/bold]")
        self._add_children(tree, root)
        self.console.print(tree)

    def _add_children(self, branch: Tree, node: Node) -> None:
        for child in node.children:
            if child.kind is EntryKind.DIRECTORY:
                sub = branch.add(f"[blue]{escape(child.name)}/[/blue]")
                self._add_children(sub, child)
            elif child.kind is EntryKind.OPAQUE:
                branch.add(f"[dim]{escape(child.name)} ({child.remote_type or 'opaque'})[/dim]")
            else:
                branch.add(escape(child.name))

    def print_move_summary(self, result: MutationResult) -> None:
        """Display move summary with color coding."""
        self.console.print("\n[bold]Move Summary:[/bold]")

        if result.succeeded_count > 0:
            self.console.print(f"  [blue]↔[/blue] Moved: {result.succeeded_count} file(s)")
        self._print_failures(result)

        if result.succeeded_count == 0 and not result.failed:
            self.console.print("\n[yellow]No files moved[/yellow]")
        elif result.failed:
            self.console.print("\n[red]Move completed with failures[/red]")
        else:
            self.console.print(
                f"\n[green]Moved {escape(result.path)} to {escape(result.target or '')}[/green]"
            )

    def print_deletion_summary(self, result: MutationResult) -> None:
        """Display deletion summary with color coding."""
        self.console.print("\n[bold]Deletion Summary:[/bold]")

        if result.succeeded_count > 0:
            self.console.print(f"  [red]✗[/red] Deleted: {result.succeeded_count} file(s)")
        self._print_failures(result)

        if result.succeeded_count == 0 and not result.failed:
            self.console.print("\n[yellow]No files deleted[/yellow]")
        elif result.failed:
            self.console.print("\n[red]Deletion completed with failures[/red]")
        else:
            self.console.print(
                f"\n[green]Deletion completed: {result.succeeded_count} file(s) total[/green]"
            )

    def _print_failures(self, result: MutationResult) -> None:
        if result.failed:
            self.console.print(f"  [red]⚡[/red] Failed: {len(result.failed)} file(s)")
            for path, message in result.failed.items():
                self.console.print(f"    • {escape(path)}: {escape(message)}")
