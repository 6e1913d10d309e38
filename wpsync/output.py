"""Console output formatting for the CLI."""

from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Prints status messages, summaries and tables with rich.

    Errors and warnings go to stderr so they stay visible when stdout is
    redirected.
    """

    def __init__(
        self,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            quiet: Suppress informational output (errors are always shown)
            console: Console for regular output
            err_console: Console for errors and warnings
        """
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        if not self.quiet:
            self.console.print(message)

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message)

    def success(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        self.err_console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {message}")

    def print_summary(self, title: str, items: Sequence[tuple[str, str]]) -> None:
        """Print a titled list of key/value pairs.

        Args:
            title: Summary heading
            items: (label, value) pairs
        """
        if self.quiet:
            return
        self.console.print("")
        self.console.print(f"[bold]{title}[/bold]")
        self.console.print("=" * len(title))
        for label, value in items:
            self.console.print(f"  {label}: {value}")

    def print_table(
        self, headers: Sequence[str], rows: Sequence[Sequence[str]], title: str = ""
    ) -> None:
        table = Table(title=title or None)
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)
