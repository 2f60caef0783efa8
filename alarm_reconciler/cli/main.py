"""
Main CLI entry point for the alarm reconciler.

`analyze` writes a plan, `apply` executes one, `sync` does both in one process.
"""

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from alarm_reconciler import __version__
from alarm_reconciler.auth.session import SessionFactory, create_cloudformation_template
from alarm_reconciler.cli.display import show_plan, show_plan_text, show_result
from alarm_reconciler.core.config import ConfigManager, ReconcilerConfig
from alarm_reconciler.core.exceptions import (
    AuthenticationError, ConfigurationError, PlanFormatError, PlanNotFoundError,
    ReconcilerError, ServiceError, TotalFailureError
)
from alarm_reconciler.core.logging import setup_logging
from alarm_reconciler.reconcile.executor import ensure_not_total_failure, get_operation_summary
from alarm_reconciler.reconcile.models import RunResult
from alarm_reconciler.reconcile.plan_io import load_plan
from alarm_reconciler.services.operations import ReconcileOperations


console = Console()

# Exit codes for different error types
EXIT_SUCCESS = 0
EXIT_ALL_FAILED = 1
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_AUTH_ERROR = 3
EXIT_SERVICE_ERROR = 4
EXIT_PLAN_ERROR = 5
EXIT_USER_CANCELLED = 130


def handle_errors(func):
    """Map reconciler exceptions to exit codes."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            console.print("\n⚠️  [yellow]Operation cancelled by user[/yellow]")
            sys.exit(EXIT_USER_CANCELLED)
        except (PlanNotFoundError, PlanFormatError) as e:
            console.print(f"❌ [red]Plan error: {e}[/red]")
            if e.details:
                console.print(f"[dim]{e.details}[/dim]")
            sys.exit(EXIT_PLAN_ERROR)
        except TotalFailureError as e:
            console.print(f"❌ [red]ERROR: {e}[/red]")
            sys.exit(EXIT_ALL_FAILED)
        except ConfigurationError as e:
            console.print(f"❌ [red]Configuration error: {e}[/red]")
            sys.exit(EXIT_CONFIG_ERROR)
        except AuthenticationError as e:
            console.print(f"❌ [red]Authentication error: {e}[/red]")
            sys.exit(EXIT_AUTH_ERROR)
        except ServiceError as e:
            console.print(f"❌ [red]Service error: {e}[/red]")
            sys.exit(EXIT_SERVICE_ERROR)
        except ReconcilerError as e:
            console.print(f"❌ [red]{e}[/red]")
            sys.exit(EXIT_GENERAL_ERROR)
        except Exception as e:
            console.print(f"💥 [red]Unexpected error: {e}[/red]")
            console.print("[dim]Re-run with --log-level DEBUG for details.[/dim]")
            logging.getLogger(__name__).debug("Unexpected error", exc_info=True)
            sys.exit(EXIT_GENERAL_ERROR)
    return wrapper


def _resolve_config(ctx: click.Context, **overrides) -> ReconcilerConfig:
    config_manager: ConfigManager = ctx.obj['config_manager']
    return config_manager.load_config(region=ctx.obj['region'], **overrides)


def _operations(config: ReconcilerConfig) -> ReconcileOperations:
    session = SessionFactory(config.role_arn).get_session(config.region)
    return ReconcileOperations(config, session)


def _write_summary(result: RunResult, path: Optional[Path]) -> None:
    if path is None:
        return
    with open(path, "w") as f:
        json.dump(get_operation_summary(result), f, indent=2)
    console.print(f"Summary written to [cyan]{path}[/cyan]")


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON configuration file (overrides environment variables)",
)
@click.option(
    "--region",
    help="AWS region to reconcile (defaults to AWS_REGION or us-east-1)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging verbosity",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Shorthand for --log-level DEBUG",
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    config_file: Optional[Path],
    region: Optional[str],
    log_level: str,
    verbose: bool,
) -> None:
    """
    Alarm Reconciler - keep CloudWatch alarms in sync with SQS queues,
    Lambda functions and DynamoDB tables.
    """
    setup_logging("DEBUG" if verbose else log_level)
    ctx.ensure_object(dict)
    ctx.obj['config_manager'] = ConfigManager(config_file)
    ctx.obj['region'] = region


@main.command()
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the plan (defaults to PLAN_FILE or plan.txt)",
)
@click.option(
    "--print-plan",
    is_flag=True,
    help="Echo the plan file contents after writing it",
)
@click.pass_context
@handle_errors
def analyze(ctx: click.Context, output: Optional[Path], print_plan: bool) -> None:
    """Compute which alarms need to be created or deleted and write a plan."""
    config = _resolve_config(ctx)
    output = output or Path(config.plan_path)
    
    console.print("[bold]Build Stage: Analyzing Resources[/bold]")
    plan = _operations(config).analyze(output)
    
    show_plan(console, plan)
    if print_plan:
        show_plan_text(console, plan)
    console.print(f"Plan saved to [cyan]{output}[/cyan]")


@main.command()
@click.option(
    "--plan", "plan_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Plan file to execute (defaults to PLAN_FILE or plan.txt)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be changed without making actual changes",
)
@click.option(
    "--notify/--no-notify",
    default=True,
    help="Publish a completion summary to the SNS topic",
)
@click.option(
    "--workers",
    type=click.IntRange(1, 32),
    help="Concurrent alarm API calls (defaults to MAX_WORKERS or 1)",
)
@click.option(
    "--summary-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the run summary as JSON to this file",
)
@click.pass_context
@handle_errors
def apply(ctx: click.Context, plan_path: Optional[Path], dry_run: bool, notify: bool, workers: Optional[int],
          summary_file: Optional[Path]) -> None:
    """Execute a plan written by `analyze`."""
    config = _resolve_config(ctx, max_workers=workers)
    plan_path = plan_path or Path(config.plan_path)
    
    console.print("[bold]Deploy Stage: Executing Alarm Changes[/bold]")
    plan = load_plan(plan_path)
    result = _operations(config).apply(plan, dry_run=dry_run, notify=notify)
    
    show_result(console, result)
    _write_summary(result, summary_file)
    ensure_not_total_failure(result)
    console.print("Completed successfully")


@main.command()
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be changed without making actual changes",
)
@click.option(
    "--save-plan",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the computed plan to this file",
)
@click.option(
    "--notify/--no-notify",
    default=True,
    help="Publish a completion summary to the SNS topic",
)
@click.option(
    "--workers",
    type=click.IntRange(1, 32),
    help="Concurrent alarm API calls (defaults to MAX_WORKERS or 1)",
)
@click.option(
    "--summary-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the run summary as JSON to this file",
)
@click.pass_context
@handle_errors
def sync(ctx: click.Context, dry_run: bool, save_plan: Optional[Path], notify: bool, workers: Optional[int],
         summary_file: Optional[Path]) -> None:
    """Analyze and apply in a single run."""
    config = _resolve_config(ctx, max_workers=workers)
    operations = _operations(config)
    
    plan = operations.analyze(save_plan)
    show_plan(console, plan)
    
    result = operations.apply(plan, dry_run=dry_run, notify=notify)
    show_result(console, result)
    _write_summary(result, summary_file)
    ensure_not_total_failure(result)
    console.print("Completed reconciliation")


@main.command("show-plan")
@click.option(
    "--plan", "plan_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Plan file to display (defaults to PLAN_FILE or plan.txt)",
)
@click.option(
    "--raw",
    is_flag=True,
    help="Print the plan file as written instead of tables",
)
@click.pass_context
@handle_errors
def show_plan_command(ctx: click.Context, plan_path: Optional[Path], raw: bool) -> None:
    """Display a plan file without applying it."""
    config = _resolve_config(ctx)
    plan = load_plan(plan_path or Path(config.plan_path))
    
    if raw:
        show_plan_text(console, plan)
    else:
        show_plan(console, plan)


@main.command("iam-template")
@click.pass_context
@handle_errors
def iam_template(ctx: click.Context) -> None:
    """Print a CloudFormation template for the IAM role the reconciler needs."""
    config = _resolve_config(ctx)
    click.echo(create_cloudformation_template(config.alarm_suffix))


if __name__ == "__main__":
    main()
