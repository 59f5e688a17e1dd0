"""
Recurring orders CLI - inspect and maintain the execution log.

Usage:
    recurring-orders --help           Show all commands
    recurring-orders init-db          Create the execution log table
    recurring-orders stats            Show execution statistics
    recurring-orders logs -n 20       Show the 20 most recent executions
    recurring-orders clear-logs -d 7  Keep only the last 7 days of history
"""

import asyncio

import typer

from recurring_orders.schemas.execution import ExecutionLogEntry, ExecutionStatus

app = typer.Typer(
    name="recurring-orders",
    help="Recurring order execution log tools",
    no_args_is_help=True,
)


def _print_success(message: str) -> None:
    """Print a success message."""
    typer.echo(f"  ✅ {message}")


def _print_error(message: str) -> None:
    """Print an error message to stderr."""
    typer.echo(f"❌ {message}", err=True)


def format_entry(entry: ExecutionLogEntry) -> str:
    """One-line rendering of a log entry."""
    marker = "✅" if entry.status == ExecutionStatus.SUCCESS else "❌"
    line = f"{entry.timestamp:%Y-%m-%d %H:%M:%S}  {marker} {entry.recurring_order_id}"
    if entry.order_id:
        line += f" -> {entry.order_id}"
    if entry.error_message:
        line += f"  ({entry.error_message})"
    return line


def _build_service():
    from recurring_orders.core.database import AsyncSessionLocal
    from recurring_orders.services.recurring_order_service import RecurringOrderService

    return RecurringOrderService.from_config(AsyncSessionLocal)


@app.command("init-db")
def init_db_command():
    """Create database tables (use alembic in production)."""
    from recurring_orders.core.database import init_db
    from recurring_orders.core.logging import setup_logging

    setup_logging()
    asyncio.run(init_db())
    _print_success("Database initialized")


@app.command()
def stats():
    """Show execution statistics computed from the log."""
    from recurring_orders.core.logging import setup_logging

    setup_logging()
    result = asyncio.run(_build_service().get_service_stats())

    typer.echo("\n📊 Recurring order executions")
    typer.echo(f"   Total:        {result.total_executions}")
    typer.echo(f"   Successful:   {result.successful_executions}")
    typer.echo(f"   Failed:       {result.failed_executions}")
    typer.echo(f"   Success rate: {result.success_rate:.1f}%")
    typer.echo(f"   Last 24h:     {result.executions_last_24h}")


@app.command()
def logs(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries to show"),
):
    """Show the most recent execution log entries."""
    from recurring_orders.core.logging import setup_logging

    setup_logging()
    entries = asyncio.run(_build_service().get_execution_logs(limit))

    if not entries:
        typer.echo("No executions recorded.")
        return

    for entry in entries:
        typer.echo(format_entry(entry))


@app.command("clear-logs")
def clear_logs(
    days: int | None = typer.Option(
        None, "--days", "-d", min=0, help="Days of history to keep (default: configured retention)"
    ),
):
    """Remove execution log entries older than the given number of days."""
    from recurring_orders.core.logging import setup_logging

    setup_logging()
    retained = asyncio.run(_build_service().clear_old_logs(days))

    if retained is None:
        _print_error("Could not clear execution logs.")
        raise typer.Exit(1)

    _print_success(f"Cleared old execution logs, kept {retained} recent entries")


if __name__ == "__main__":
    app()
