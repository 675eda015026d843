"""CLI entrypoint for surveyor.

Exit codes:
    0 - every selected project was planned (and posted, per policy)
    1 - at least one project failed, or --project matched nothing
    2 - the configuration could not be found, read or parsed
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import ConfigError, Settings, determine_config_path, load_config
from .normalizer import get_processor
from .notifier import SlackNotifier
from .pipeline import PlanPipeline
from .runner import RunSummary, SurveyRunner
from .terraform import TerraformRunner

EXIT_PROJECT_FAILED = 1
EXIT_CONFIG_ERROR = 2

app = typer.Typer(
    name="surveyor",
    help="Run terraform plan and send the output to slack.",
    add_completion=False,
)

console = Console()


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure logging with Rich handler.

    Args:
        level: Log level name used when not verbose.
        verbose: If True, set DEBUG level.
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # GitPython is chatty at DEBUG
    logging.getLogger("git").setLevel(logging.WARNING)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"surveyor version {__version__}")
        raise typer.Exit()


def print_summary(summary: RunSummary) -> None:
    """Print a table of per-project outcomes."""
    if not summary.results:
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("#", style="dim", width=3)
    table.add_column("Project", width=30)
    table.add_column("Status", width=20)
    table.add_column("Error")

    for i, result in enumerate(summary.results, 1):
        status = (
            f"[green]{result.status}[/green]" if result.success else f"[red]{result.status}[/red]"
        )
        error = escape((result.error or "").splitlines()[0]) if result.error else ""
        table.add_row(str(i), escape(result.project_name), status, error)

    console.print(table)


@app.command()
def survey(
    project: Optional[str] = typer.Option(
        None,
        "--project",
        "-p",
        help="Only survey the project with this exact name.",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="The location of your config file. "
             "Defaults to looking for a .surveyor.toml file inside of $HOME/.config/",
    ),
    background: bool = typer.Option(
        False,
        "--background",
        help="Run the survey on a worker thread (projects still run one at a time).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the plans instead of posting them to Slack.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable debug logging.",
    ),
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Run terraform plan for each configured project and send the output to slack."""
    settings = Settings.from_env()
    setup_logging(settings.log_level, verbose)

    try:
        config_path = determine_config_path(config, settings)
        survey_config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    options = survey_config.options
    pipeline = PlanPipeline(
        runner=TerraformRunner(binary=options.terraform_binary),
        processor=get_processor(options.output_processor),
        notifier=SlackNotifier(timeout=options.notify_timeout),
        notification_policy=options.notification_policy,
        dry_run=dry_run,
    )

    summary = SurveyRunner(pipeline, console=console).run(
        survey_config,
        project_filter=project,
        background=background,
    )

    if dry_run:
        for result in summary.results:
            if result.plan_text is not None:
                console.rule(escape(result.project_name))
                console.print(result.plan_text, markup=False, highlight=False)

    print_summary(summary)

    if not summary.success:
        raise typer.Exit(EXIT_PROJECT_FAILED)
