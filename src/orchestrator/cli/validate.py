"""Implementation of the 'workflow validate' command.

This module provides functionality to validate workflow files without
executing them, displaying every defect found rather than only the first.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from orchestrator.config.loader import WorkflowParser
from orchestrator.config.validator import reference_warnings
from orchestrator.exceptions import ConfigurationError, OrchestratorError

if TYPE_CHECKING:
    from orchestrator.config.schema import WorkflowDef


def validate_workflow_file(
    workflow_path: Path,
    console: Console | None = None,
) -> tuple[bool, WorkflowDef | None]:
    """Validate a workflow file.

    Attempts to load and validate the workflow definition, reporting any
    errors encountered during the process.

    Args:
        workflow_path: Path to the workflow file.
        console: Optional Rich console for output.

    Returns:
        A tuple of (is_valid, workflow_or_none).
    """
    output_console = console if console is not None else Console()

    try:
        workflow = WorkflowParser().parse(workflow_path)
        return True, workflow
    except OrchestratorError as e:
        display_validation_error(e, workflow_path, output_console)
        return False, None
    except Exception as e:
        # Unexpected error
        output_console.print(
            Panel(
                f"[bold red]Unexpected Error[/bold red]\n\n{escape(str(e))}",
                title="[red]Validation Failed[/red]",
                border_style="red",
            )
        )
        return False, None


def display_validation_error(
    error: OrchestratorError,
    workflow_path: Path,
    console: Console,
) -> None:
    """Display a validation error with Rich formatting.

    Configuration errors list each individual defect on its own line.

    Args:
        error: The error that occurred.
        workflow_path: Path to the workflow file.
        console: Rich console for output.
    """
    error_type = type(error).__name__

    content = f"[bold red]{escape(error_type)}[/bold red]\n\n"
    content += f"[dim]File:[/dim] {escape(str(workflow_path))}\n\n"

    if isinstance(error, ConfigurationError) and error.errors:
        content += escape(error.message.split(":\n")[0])
        content += f"\n\n[bold]{len(error.errors)} error(s):[/bold]"
        for item in error.errors:
            content += f"\n  - {escape(item)}"
    else:
        content += escape(error.message)

    if error.suggestion:
        content += f"\n\n[yellow]Suggestion:[/yellow] {escape(error.suggestion)}"

    console.print(
        Panel(
            content,
            title="[red]Validation Failed[/red]",
            border_style="red",
        )
    )


def display_validation_success(
    workflow: WorkflowDef,
    workflow_path: Path,
    console: Console,
) -> None:
    """Display validation success with a workflow summary.

    Args:
        workflow: The validated workflow definition.
        workflow_path: Path to the workflow file.
        console: Rich console for output.
    """
    root_count = sum(1 for task in workflow.tasks if not task.dependencies)

    # Workflow info table
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("File", escape(str(workflow_path)))
    table.add_row("Name", escape(workflow.name))
    if workflow.description:
        table.add_row("Description", escape(workflow.description))
    table.add_row("Version", escape(workflow.version))
    table.add_row("Tasks", str(len(workflow.tasks)))
    table.add_row("Root Tasks", str(root_count))
    table.add_row("Timeout", f"{workflow.settings.timeout}s")
    table.add_row("On Failure", workflow.settings.on_failure)

    console.print(
        Panel(
            table,
            title="[green]Validation Successful[/green]",
            border_style="green",
        )
    )

    task_table = Table(title="Tasks", show_lines=True)
    task_table.add_column("ID", style="cyan")
    task_table.add_column("Agent", style="green")
    task_table.add_column("Dependencies")

    for task in workflow.tasks:
        deps = ", ".join(task.dependencies) if task.dependencies else "[dim]none[/dim]"
        task_table.add_row(escape(task.id), escape(task.agent), deps)

    console.print(task_table)
    console.print(Text(WorkflowParser().generate_dependency_graph(workflow)))

    for warning in reference_warnings(workflow):
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
