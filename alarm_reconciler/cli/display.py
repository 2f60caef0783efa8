"""Rich rendering of plans and run results."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from alarm_reconciler.reconcile.models import Plan, RunResult
from alarm_reconciler.reconcile.plan_io import serialize_plan
from alarm_reconciler.reconcile.policy import format_threshold


def show_plan(console: Console, plan: Plan) -> None:
    """Print a plan as tables of creates and deletes."""
    console.print(f"[bold]Region:[/bold] {plan.region}   [bold]Suffix:[/bold] {plan.alarm_suffix}")
    
    if plan.is_empty:
        console.print("✅ [green]Alarms are in sync - nothing to do[/green]")
        return
    
    if plan.creates:
        table = Table(title=f"Alarms to create ({len(plan.creates)})", title_justify="left")
        table.add_column("Type", style="cyan")
        table.add_column("Resource")
        table.add_column("Alarm", style="green")
        table.add_column("Threshold", justify="right")
        table.add_column("Metric", style="dim")
        for action in plan.creates:
            table.add_row(
                action.resource_type,
                action.resource_name,
                action.alarm_name,
                format_threshold(action.threshold),
                action.metric_name,
            )
        console.print(table)
    
    if plan.deletes:
        table = Table(title=f"Alarms to delete ({len(plan.deletes)})", title_justify="left")
        table.add_column("Alarm", style="red")
        for action in plan.deletes:
            table.add_row(action.alarm_name)
        console.print(table)


def show_plan_text(console: Console, plan: Plan) -> None:
    """Print the raw plan file contents."""
    console.print(Panel(serialize_plan(plan).rstrip("\n"), title="Plan contents", border_style="blue", expand=False))


def show_result(console: Console, result: RunResult) -> None:
    """Print the end-of-run summary."""
    title = "Deployment Complete (dry run)" if result.dry_run else "Deployment Complete"
    
    lines = [
        f"Region: {result.region}",
        f"Timestamp: {result.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        f"✓ Alarms created:  {result.created}",
        f"✓ Alarms deleted:  {result.deleted}",
        f"⚠ Failed operations: {result.failed}",
    ]
    if result.skipped:
        lines.append(f"⏭  Skipped (unsupported type): {result.skipped}")
    
    border = "red" if result.all_failed else ("yellow" if result.failed else "green")
    console.print(Panel("\n".join(lines), title=title, border_style=border, expand=False))
    
    if result.failed_outcomes:
        table = Table(title="Failed operations", title_justify="left")
        table.add_column("Action", style="cyan")
        table.add_column("Alarm")
        table.add_column("Error", style="red")
        for outcome in result.failed_outcomes:
            table.add_row(outcome.action.kind, outcome.action.alarm_name, outcome.error_detail or "")
        console.print(table)
