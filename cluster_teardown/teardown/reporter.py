"""Teardown plan and report formatting and display."""

from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..models.plan import TeardownPlan
from ..models.step_outcome import StepOutcome, StepStatus
from ..models.teardown_operation import TeardownOperation
from .report import TeardownReport

STATUS_STYLES = {
    StepStatus.SUCCEEDED: ("✓", "green"),
    StepStatus.FAILED: ("✗", "red"),
    StepStatus.SKIPPED: ("➖", "yellow"),
}


class TeardownReporter:
    """Format and display teardown plans and reports."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize teardown reporter.

        Args:
            console: Rich console instance (creates new one if not provided)
        """
        self.console = console or Console()

    def display_plan(self, plan: TeardownPlan, show_steps: bool = True) -> None:
        """Display the resources that will be deleted, grouped by kind.

        Args:
            plan: Plan to display
            show_steps: Whether to list prerequisite steps under each resource
        """
        self.console.print()
        self.console.print(
            Panel(
                f"[bold]Teardown Plan[/bold]\n"
                f"Cluster: {plan.identifier}\n"
                f"Resources: {len(plan.resources)}  Steps: {len(plan)}",
                style="cyan",
            )
        )

        for kind, refs in plan.matched_by_kind().items():
            self.console.print()
            self.console.print(f"[bold cyan]{kind.label.upper()}[/bold cyan] ({len(refs)})")

            table = Table(show_header=True, box=None, padding=(0, 2))
            table.add_column("Name", style="white")
            table.add_column("ID", style="dim")
            table.add_column("Steps")

            for resource_plan in plan.for_kind(kind):
                steps = " → ".join(step.describe() for step in resource_plan.steps) if show_steps else ""
                table.add_row(resource_plan.ref.name, resource_plan.ref.id, steps)

            self.console.print(table)

        self._display_warnings(plan.warnings)
        self.console.print()

    def display_outcome(self, outcome: StepOutcome) -> None:
        """Print a single progress line for an outcome."""
        symbol, style = STATUS_STYLES[outcome.status]
        owner = outcome.step.owner
        line = f"  [{style}]{symbol}[/{style}] {owner.kind.value} {owner.name or owner.id}: {outcome.step.describe()}"

        if outcome.status is StepStatus.SUCCEEDED and outcome.detail:
            line += f" [dim]({outcome.detail})[/dim]"
        elif outcome.reason:
            line += f" [{style}]({outcome.reason})[/{style}]"

        self.console.print(line)

    def display_report(self, report: TeardownReport, operation: Optional[TeardownOperation] = None) -> None:
        """Display the summary of an executed teardown.

        Args:
            report: Report to display
            operation: Operation metadata to show in the header (optional)
        """
        self.console.print()

        if report.is_empty:
            self.console.print("[green]✓ Nothing to delete[/green]", style="bold")
            return

        table = Table(title="Teardown Summary", show_header=True, header_style="bold magenta")
        table.add_column("Kind", style="cyan", width=16)
        table.add_column("Matched", justify="right", width=8)
        table.add_column("Deleted", justify="right", width=8)
        table.add_column("Failed", justify="right", width=8)
        table.add_column("Skipped", justify="right", width=8)

        for kind, counts in report.summarize().items():
            table.add_row(
                kind.label,
                str(counts["matched"]),
                f"[green]{counts['succeeded']}[/green]",
                f"[red]{counts['failed']}[/red]" if counts["failed"] else "0",
                f"[yellow]{counts['skipped']}[/yellow]" if counts["skipped"] else "0",
            )

        totals = report.totals()
        table.add_row("━" * 16, "━" * 8, "━" * 8, "━" * 8, "━" * 8, style="dim")
        table.add_row(
            "[bold]Total",
            f"[bold]{totals['matched']}",
            f"[bold]{totals['succeeded']}",
            f"[bold]{totals['failed']}",
            f"[bold]{totals['skipped']}",
        )
        self.console.print(table)

        if report.failed_outcomes:
            self.console.print()
            self.console.print("[bold red]Failed steps (manual follow-up required):[/bold red]")
            for outcome in report.failed_outcomes:
                owner = outcome.step.owner
                self.console.print(
                    f"  ✗ {owner.kind.value} {owner}: {outcome.step.describe()} - {outcome.error_code}: {outcome.reason}"
                )

        self._display_warnings(report.warnings)

        self.console.print()
        if report.cancelled:
            self.console.print("⚠️  Teardown cancelled - remaining steps were skipped", style="bold yellow")
        elif report.has_failures:
            self.console.print("⚠️  Teardown finished with failures", style="bold yellow")
        else:
            self.console.print("✓ All operations finished", style="bold green")

        if operation is not None:
            duration = f" in {operation.duration_seconds:.1f}s" if operation.duration_seconds is not None else ""
            self.console.print(f"  Operation {operation.operation_id} ({operation.status.value}){duration}", style="dim")

    def _display_warnings(self, warnings: Sequence[str]) -> None:
        if not warnings:
            return
        self.console.print()
        self.console.print("[bold yellow]Warnings:[/bold yellow]")
        for warning in warnings:
            self.console.print(f"  ⚠️  {warning}", style="yellow")
