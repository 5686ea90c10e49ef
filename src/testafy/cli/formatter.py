"""Rich terminal formatting for the testafy CLI."""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from testafy.client.models import RunStats, TestStatus
from testafy.client.results import summarize_tap


class CLIFormatter:
    """Handles all terminal output of the CLI."""

    STATUS_COLORS: dict[TestStatus, str] = {
        TestStatus.UNSCHEDULED: "dim",
        TestStatus.QUEUED: "yellow",
        TestStatus.RUNNING: "blue",
        TestStatus.STOPPED: "red",
        TestStatus.COMPLETED: "green",
        TestStatus.UNKNOWN: "magenta",
    }

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    # ── run ──────────────────────────────────────────────────────────

    def print_submitted(self, test_id: str, *, waiting: bool) -> None:
        note = "waiting for completion" if waiting else "poll with `testafy status`"
        self.console.print(
            Panel(
                f"[bold]Test ID:[/bold] {test_id}\n[dim]{note}[/dim]",
                title="Test Submitted",
                border_style="green",
            )
        )

    def print_status(self, test_id: str, status: TestStatus) -> None:
        color = self.STATUS_COLORS.get(status, "white")
        self.console.print(
            f"[bold]{test_id}[/bold]  [{color}]{status.value}[/{color}]"
        )

    def print_stats(self, stats: RunStats) -> None:
        table = Table(title="Checks", box=box.ROUNDED, border_style="cyan")
        table.add_column("Passed", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")
        table.add_column("Planned", justify="right")
        table.add_row(str(stats.passed), str(stats.failed), str(stats.planned))
        self.console.print(table)

    def print_results(self, report: str) -> None:
        """Print a TAP report, titled with a quick ok / not ok tally."""
        summary = summarize_tap(report)
        title = f"Results ({summary.passed} ok, {summary.failed} not ok)"
        color = "red" if summary.failed else "green"
        self.console.print(
            Panel(Syntax(report or "(no results)", "text"), title=title, border_style=color)
        )

    def print_screenshots(self, saved: dict[str, str]) -> None:
        if not saved:
            self.info("No screenshots for this run")
            return
        table = Table(title=f"Screenshots ({len(saved)})", box=box.SIMPLE)
        table.add_column("Name", style="bold")
        table.add_column("Saved to")
        for name, path in saved.items():
            table.add_row(name, path)
        self.console.print(table)

    # ── messages ─────────────────────────────────────────────────────

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]>[/cyan] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]✗[/bold red] {escape(message)}")
