"""Typer application definition for the workflow CLI.

This module defines the main Typer app, global options, and the run,
validate and list commands.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from orchestrator import __version__

# Create the main Typer app
app = typer.Typer(
    name="workflow",
    help="Agent Orchestrator - Run multi-agent workflows defined in YAML or JSON.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for progress and errors (stderr) and for results (stdout)
console = Console(stderr=True, highlight=False)
output_console = Console(highlight=False)


def configure_logging(verbose: bool) -> None:
    """Route the package's log records to the console.

    With ``verbose`` every DEBUG record is rendered through Rich; otherwise
    records are dropped, since progress is already reported on the console.

    Args:
        verbose: Whether to show detailed logs.
    """
    package_logger = logging.getLogger("orchestrator")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    if verbose:
        package_logger.addHandler(
            RichHandler(console=console, show_path=False, markup=False)
        )
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.addHandler(logging.NullHandler())
        package_logger.setLevel(logging.WARNING)


def format_error(error: Exception) -> Panel:
    """Format an exception for Rich console display.

    Creates a styled Panel with the error message, every individual defect
    for configuration errors, and the suggestion (if available).

    Args:
        error: The exception to format.

    Returns:
        Rich Panel with formatted error content.
    """
    from orchestrator.exceptions import ConfigurationError, OrchestratorError

    content = Text()

    if isinstance(error, ConfigurationError) and error.errors:
        content.append(error.message.split(":\n")[0], style="bold red")
        for item in error.errors:
            content.append("\n  - ")
            content.append(item, style="red")
    elif isinstance(error, OrchestratorError):
        content.append(error.message, style="bold red")
    else:
        content.append(str(error), style="bold red")

    if isinstance(error, OrchestratorError):
        if error.file_path:
            content.append("\n\n")
            content.append("Location: ", style="yellow")
            content.append(error.file_path, style="cyan")

        if error.suggestion:
            content.append("\n\n")
            content.append("Suggestion: ", style="green")
            content.append(error.suggestion, style="white")

    error_type = type(error).__name__
    return Panel(
        content,
        title=f"[bold red]{escape(error_type)}[/bold red]",
        border_style="red",
        padding=(1, 2),
    )


def print_error(error: Exception) -> None:
    """Print a formatted error to stderr.

    Args:
        error: The exception to print.
    """
    console.print(format_error(error))


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        output_console.print(f"Agent Orchestrator v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Agent Orchestrator - Run multi-agent workflows defined in YAML or JSON."""


@app.command()
def run(
    workflow: Annotated[
        Path,
        typer.Argument(
            help="Path to the workflow file (.yaml, .yml or .json).",
            resolve_path=True,
        ),
    ],
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show detailed execution logs for every task.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-d",
            help="Validate and show the execution plan without running.",
        ),
    ] = False,
) -> None:
    """Execute a workflow file.

    Tasks run in dependency order; independent tasks run concurrently.
    Exits with status 1 unless every task succeeds.

    \b
    Examples:
        workflow run workflows/hello-world.yaml
        workflow run workflows/hello-world.yaml --verbose
        workflow run workflows/hello-world.yaml --dry-run
    """
    import asyncio

    # Import here to avoid circular imports and defer heavy imports
    from orchestrator.cli.run import (
        display_dry_run,
        display_summary,
        display_workflow_details,
        run_workflow_async,
    )
    from orchestrator.config.loader import WorkflowParser

    configure_logging(verbose)

    output_console.print(f"[blue]Loading workflow from: {escape(str(workflow))}[/blue]")

    try:
        parser = WorkflowParser()
        definition = parser.parse(workflow)
    except Exception as e:
        print_error(e)
        raise typer.Exit(code=1) from None

    display_workflow_details(definition, output_console)

    if dry_run:
        display_dry_run(definition, parser, output_console)
        return

    try:
        summary = asyncio.run(run_workflow_async(definition, output_console, verbose=verbose))
    except Exception as e:
        print_error(e)
        raise typer.Exit(code=1) from None

    display_summary(summary, output_console, verbose=verbose)

    if not summary.succeeded:
        raise typer.Exit(code=1)


@app.command()
def validate(
    workflow: Annotated[
        Path,
        typer.Argument(
            help="Path to the workflow file to validate.",
            resolve_path=True,
        ),
    ],
) -> None:
    """Validate a workflow file without executing it.

    Checks the workflow file for:
    - Valid YAML or JSON syntax
    - Required fields and known agent kinds
    - Unique task ids and known dependencies
    - Task ids that can be referenced as ${id.output}
    - An acyclic dependency graph

    \b
    Examples:
        workflow validate workflows/hello-world.yaml
    """
    from orchestrator.cli.validate import (
        display_validation_success,
        validate_workflow_file,
    )

    is_valid, definition = validate_workflow_file(workflow, output_console)

    if is_valid and definition is not None:
        display_validation_success(definition, workflow, output_console)
    else:
        raise typer.Exit(code=1)


@app.command("list")
def list_workflows(
    path: Annotated[
        Path,
        typer.Option(
            "--path",
            "-p",
            help="Additional directory to search for workflows.",
        ),
    ] = Path("."),
) -> None:
    """List available workflow files.

    Searches .claude/workflows/, workflows/ and the --path directory
    (recursively) for .yaml, .yml and .json files.

    \b
    Examples:
        workflow list
        workflow list --path ./examples
    """
    from orchestrator.cli.listing import (
        default_search_paths,
        discover_workflows,
        display_workflow_listing,
    )

    listing = discover_workflows(default_search_paths(path))
    display_workflow_listing(listing, output_console)
