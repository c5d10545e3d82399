"""Main CLI entry point using Typer."""

import contextlib
import logging
import signal
import sys
import threading
from datetime import datetime
from importlib import metadata
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..errors import ProviderUnreachable
from ..openstack import OpenStackInventory, OpenStackMutator, create_connection, verify_connection
from ..teardown.audit import AuditStorage
from ..teardown.cleaner import ClusterCleaner
from ..teardown.reporter import TeardownReporter
from ..utils.logging import setup_logging
from .config import Config

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="cluster-teardown",
    help="OpenStack Cluster Teardown - delete all resources of a cluster in dependency order",
    add_completion=False,
)

# Create Rich console for output
console = Console()

# Global config
config: Optional[Config] = None


@app.callback()
def main(
    cloud: Optional[str] = typer.Option(None, "--cloud", "-c", help="Cloud name from clouds.yaml (default: $OS_CLOUD)"),
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        help="Config file (default: $CLUSTER_TEARDOWN_CONFIG or ~/.config/cluster-teardown/config.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress output except errors"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write debug logs to this file"),
):
    """OpenStack Cluster Teardown - delete all resources of a cluster in dependency order."""
    global config

    # Load configuration
    try:
        config = Config.load(config_file)
    except ValueError as e:
        console.print(f"✗ Invalid configuration: {e}", style="bold red")
        raise typer.Exit(code=1)

    # Override with CLI options
    if cloud:
        config.cloud = cloud

    # Setup logging
    log_level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    setup_logging(level=log_level, verbose=verbose, log_file=log_file)

    # Disable colors if requested
    if no_color:
        console.no_color = True


@app.command()
def version():
    """Show version information."""
    from .. import __version__

    console.print(f"cluster-teardown version {__version__}")
    console.print(f"Python {sys.version.split()[0]}")
    console.print(f"openstacksdk {metadata.version('openstacksdk')}")


def build_cleaner(audit: bool = True) -> ClusterCleaner:
    """Connect to OpenStack and wire the providers into a cleaner.

    Args:
        audit: Whether to audit executed operations

    Returns:
        ClusterCleaner bound to the configured cloud

    Raises:
        ProviderUnreachable: If OpenStack cannot be reached or authenticated against
    """
    conn = create_connection(cloud=config.cloud, api_timeout=config.api_timeout)
    project_id = verify_connection(conn)
    logger.info(f"Connected to OpenStack project {project_id}")

    audit_storage = AuditStorage(config.audit_dir) if audit and config.audit_enabled else None

    return ClusterCleaner(
        inventory=OpenStackInventory(conn),
        mutator=OpenStackMutator(conn, max_retries=config.max_retries),
        audit_storage=audit_storage,
        default_security_group=config.default_security_group,
        cloud=config.cloud,
    )


@contextlib.contextmanager
def cancel_on_interrupt(cancel_event: threading.Event) -> Iterator[None]:
    """Turn the first Ctrl-C into a cooperative cancellation request."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handle_interrupt(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        cancel_event.set()
        console.print(
            "\n⚠️  Cancelling - waiting for the current step to finish (Ctrl-C again to abort)",
            style="bold yellow",
        )

    previous_handler = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous_handler)


@app.command()
def destroy(
    cluster: str = typer.Argument(..., help="Cluster identifier (substring of resource names)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the teardown plan without deleting anything"),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 3 if any resource failed to delete"),
    no_audit: bool = typer.Option(False, "--no-audit", help="Do not write an audit log"),
):
    """Delete all OpenStack resources whose names contain CLUSTER.

    Resources are deleted in dependency order: instances, load balancers
    (after releasing their floating IPs), routers (after removing interfaces
    and the external gateway), networks (after deleting user ports and
    subnets) and finally security groups. The "default" security group is
    never touched.

    A failing resource does not stop the teardown. Everything that depends on
    it is skipped and reported for manual follow-up.

    Examples:
        # Preview what would be deleted
        cluster-teardown destroy demo --dry-run

        # Delete interactively
        cluster-teardown --cloud staging destroy demo

        # Delete without prompting (automation)
        cluster-teardown destroy demo --yes
    """
    try:
        if not cluster.strip():
            console.print("✗ Error: No cluster provided", style="bold red")
            raise typer.Exit(code=1)

        cleaner = build_cleaner(audit=not no_audit)
        reporter = TeardownReporter(console)

        console.print(f"\n🔍 Searching for resources with names containing: [bold cyan]{cluster}[/bold cyan]")
        plan = cleaner.preview(cluster)

        if plan.is_empty:
            console.print(
                f"✓ No instances, load balancers, routers, networks, or security groups found matching '{cluster}'",
                style="green",
            )
            for warning in plan.warnings:
                console.print(f"  ⚠️  {warning}", style="yellow")
            raise typer.Exit(code=0)

        console.print("\nThe following resources will be [bold red]DELETED[/bold red]:")
        reporter.display_plan(plan)

        if dry_run:
            operation = cleaner.record_preview(plan)
            console.print(f"Dry run - nothing deleted ({operation.total_resources} resource(s) planned)", style="cyan")
            raise typer.Exit(code=0)

        if not yes:
            confirm = typer.confirm("Are you sure you want to delete ALL of these resources?", default=False)
            if not confirm:
                console.print("Deletion aborted by user.")
                raise typer.Exit(code=0)

        console.print()
        cancel_event = threading.Event()
        with cancel_on_interrupt(cancel_event):
            operation, report = cleaner.execute(
                plan,
                confirmed=True,
                cancel_event=cancel_event,
                on_outcome=reporter.display_outcome,
            )

        reporter.display_report(report, operation)

        logger.info(
            f"Teardown of '{cluster}' finished with status {operation.status.value}: "
            f"{operation.succeeded_count} deleted, {operation.failed_count} failed, {operation.skipped_count} skipped"
        )

        if strict and report.has_failures:
            raise typer.Exit(code=3)

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("\n✗ Teardown aborted", style="bold red")
        raise typer.Exit(code=2)
    except ProviderUnreachable as e:
        console.print(f"✗ Cannot reach OpenStack: {e}", style="bold red")
        raise typer.Exit(code=2)
    except ValueError as e:
        console.print(f"✗ Error: {e}", style="bold red")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"✗ Error during teardown: {e}", style="bold red")
        logger.exception("Error in destroy command")
        raise typer.Exit(code=2)


@app.command()
def history(
    since: Optional[str] = typer.Option(None, "--since", help="Only show operations since date (YYYY-MM-DD)"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of operations to show"),
):
    """Show audited teardown operations, newest first."""
    try:
        since_dt = None
        if since:
            try:
                since_dt = datetime.strptime(since, "%Y-%m-%d")
            except ValueError:
                console.print(f"✗ Invalid date: {since}. Use YYYY-MM-DD", style="bold red")
                raise typer.Exit(code=1)

        storage = AuditStorage(config.audit_dir)
        operations = storage.query_operations(since=since_dt)

        if not operations:
            console.print("No teardown operations recorded.")
            return

        table = Table(title="Teardown History", show_header=True, header_style="bold magenta")
        table.add_column("Operation", style="dim")
        table.add_column("Cluster", style="cyan")
        table.add_column("Mode")
        table.add_column("Status")
        table.add_column("Timestamp")
        table.add_column("Deleted", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Skipped", justify="right")

        for audit_data in list(reversed(operations))[: max(limit, 0)]:
            op = audit_data["operation"]
            table.add_row(
                op["operation_id"],
                op["cluster"],
                op["mode"],
                op["status"],
                op["timestamp"],
                str(op["succeeded_count"]),
                str(op["failed_count"]),
                str(op["skipped_count"]),
            )

        console.print(table)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"✗ Error reading audit logs: {e}", style="bold red")
        logger.exception("Error in history command")
        raise typer.Exit(code=2)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
