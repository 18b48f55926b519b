"""CLI interface for fs-group-import."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import AppConfig, ConfigError, load_config
from .logging_utils import (
    create_file_handler,
    generate_run_id,
    redact_token,
    setup_logging,
)
from .models import OutcomeStatus
from .parser import ParseError, default_layout
from .pipeline import check_groups, run_import

app = typer.Typer(
    name="fs-group-import",
    help="Bulk-create access-control groups from a spreadsheet template",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

STATUS_STYLES = {
    OutcomeStatus.CREATED: "green",
    OutcomeStatus.SKIPPED: "yellow",
    OutcomeStatus.FAILED: "red",
}

InputArg = Annotated[Path, typer.Argument(help="Spreadsheet (.xlsx, .xlsm or .csv) to import")]
ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Config profile / environment (e.g. staging)"),
]
ConfigOpt = Annotated[Path | None, typer.Option("--config", "-c", help="Path to config file")]
LayoutOpt = Annotated[
    str | None,
    typer.Option("--layout", help="Template layout: sheet-per-group or row-per-group"),
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"fs-group-import {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version", help="Show version and exit.", callback=_version_callback, is_eager=True
        ),
    ] = False,
) -> None:
    """Bulk-create access-control groups from a spreadsheet template."""


def get_config(
    config_path: Path | None, profile: str | None, layout: str | None = None, **overrides: object
) -> AppConfig:
    """Load configuration and apply CLI overrides, exiting with code 2 on error."""
    try:
        if layout is not None:
            overrides["layout"] = default_layout(layout)
        return load_config(config_path, profile).with_overrides(**overrides)
    except (ConfigError, ValueError) as e:
        console.print(f"[red]Error loading config: {escape(str(e))}[/red]")
        raise typer.Exit(2) from None


@app.command()
def run(
    input_file: InputArg,
    profile: ProfileOpt = None,
    config_path: ConfigOpt = None,
    layout: LayoutOpt = None,
    dry_run: Annotated[
        bool | None,
        typer.Option("--dry-run/--no-dry-run", help="Process everything but skip API calls"),
    ] = None,
    concurrency: Annotated[
        int | None, typer.Option("--concurrency", min=1, help="Concurrent requests")
    ] = None,
    max_retries: Annotated[
        int | None, typer.Option("--max-retries", min=1, help="Attempts per group")
    ] = None,
    output_dir: Annotated[
        Path | None, typer.Option("--output-dir", "-o", help="Report directory")
    ] = None,
    verbose: VerboseOpt = False,
) -> None:
    """Parse, validate and create every group in INPUT_FILE."""
    setup_logging(verbose, console)
    config = get_config(
        config_path,
        profile,
        layout,
        input_file=input_file,
        dry_run=dry_run,
        concurrency=concurrency,
        max_retries=max_retries,
        output_dir=output_dir,
    )

    redact_token(config.api.auth_token)
    run_id = generate_run_id()
    file_handler = create_file_handler(
        config.run.output_dir / "logs", run_id, token=config.api.auth_token
    )
    logging.getLogger().addHandler(file_handler)
    logger.debug("Run log: %s", file_handler.baseFilename)

    try:
        result = run_import(config, run_id=run_id, console=console)
    except ParseError as e:
        console.print(f"[red]Parse error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from None
    except ConfigError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(2) from None
    finally:
        logging.getLogger().removeHandler(file_handler)
        file_handler.close()

    title = "Group Import Results" + (" (dry run)" if result.dry_run else "")
    table = Table(title=title)
    table.add_column("Group", style="cyan")
    table.add_column("Status")
    table.add_column("HTTP", justify="right")
    table.add_column("Details", overflow="fold")
    for outcome in result.outcomes:
        style = STATUS_STYLES[outcome.status]
        table.add_row(
            outcome.group_name or "[dim]<unnamed>[/dim]",
            f"[{style}]{outcome.status}[/{style}]",
            str(outcome.http_status or ""),
            outcome.error_message or outcome.group_id or "",
        )
    console.print(table)

    summary = result.summary
    console.print(
        f"\n[bold]{summary['total']}[/bold] group(s): "
        f"[green]{summary[OutcomeStatus.CREATED]} created[/green], "
        f"[yellow]{summary[OutcomeStatus.SKIPPED]} skipped[/yellow], "
        f"[red]{summary[OutcomeStatus.FAILED]} failed[/red]"
    )
    console.print(f"Report: {result.report.json_path}")
    console.print(f"        {result.report.csv_path}")


@app.command()
def validate(
    input_file: InputArg,
    profile: ProfileOpt = None,
    config_path: ConfigOpt = None,
    layout: LayoutOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Parse and validate INPUT_FILE without calling the API."""
    setup_logging(verbose, console)
    config = get_config(config_path, profile, layout, input_file=input_file)

    try:
        specs, results = check_groups(config)
    except ParseError as e:
        console.print(f"[red]Parse error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from None

    table = Table(title="Validation Results")
    table.add_column("Group", style="cyan")
    table.add_column("Source", style="dim")
    table.add_column("Resources", justify="right")
    table.add_column("Principals", justify="right")
    table.add_column("Status")
    table.add_column("Problems", overflow="fold")
    for spec, result in zip(specs, results):
        table.add_row(
            spec.name or "[dim]<unnamed>[/dim]",
            str(spec.source),
            str(len(spec.resources)),
            str(len(spec.principals)),
            "[green]✓ valid[/green]" if result.valid else "[red]✗ invalid[/red]",
            result.message,
        )
    console.print(table)

    invalid = sum(1 for r in results if not r.valid)
    console.print(f"\n{len(results) - invalid} valid, {invalid} invalid")
    if invalid:
        raise typer.Exit(1)
