"""Implementation of the 'workflow run' command.

This module provides helper functions for executing workflow files and
reporting their progress and outcome on the console.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from orchestrator.agents.registry import create_default_registry
from orchestrator.engine.events import EventType, WorkflowEvent
from orchestrator.engine.state import OverallStatus, TaskStatus
from orchestrator.engine.workflow import ExecutionEngine

if TYPE_CHECKING:
    from orchestrator.agents.base import AgentInvoker
    from orchestrator.config.loader import WorkflowParser
    from orchestrator.config.schema import WorkflowDef
    from orchestrator.engine.state import ExecutionSummary

# Longest output shown inline by the console reporter
_OUTPUT_PREVIEW = 200

_STATUS_STYLES: dict[TaskStatus, str] = {
    TaskStatus.SUCCEEDED: "green",
    TaskStatus.FAILED: "red",
    TaskStatus.SKIPPED: "yellow",
}

_OVERALL_STYLES: dict[OverallStatus, str] = {
    OverallStatus.SUCCESS: "green",
    OverallStatus.PARTIAL: "yellow",
    OverallStatus.FAILURE: "red",
}


def _preview(value: Any) -> str:
    """Shorten a task output for one-line display."""
    from orchestrator.engine.context import to_text

    text = to_text(value)
    if len(text) > _OUTPUT_PREVIEW:
        return text[: _OUTPUT_PREVIEW - 3] + "..."
    return text


class ConsoleReporter:
    """Event listener that prints task progress to a Rich console.

    In the default mode only task completions, failures and skips are
    printed. In verbose mode dispatches are printed too, along with the
    interpolated parameters and each task's output.

    Example:
        >>> engine = ExecutionEngine(create_default_registry())
        >>> engine.subscribe(ConsoleReporter(Console(), verbose=True))
    """

    def __init__(self, console: Console, verbose: bool = False) -> None:
        self.console = console
        self.verbose = verbose

    def __call__(self, event: WorkflowEvent) -> None:
        task = escape(event.task_id or "")
        data = event.data

        if event.type is EventType.WORKFLOW_START:
            self.console.print(
                f"[bold]Starting workflow:[/bold] {escape(event.workflow)} "
                f"[dim]({data.get('tasks', 0)} tasks)[/dim]"
            )
        elif event.type is EventType.TASK_START:
            if self.verbose:
                self.console.print(
                    f"[cyan]>[/cyan] {task} [dim]({escape(str(data.get('agent', '')))})[/dim]"
                )
                parameters = data.get("parameters") or {}
                for key, value in parameters.items():
                    self.console.print(
                        f"    [dim]{escape(str(key))}:[/dim] {escape(_preview(value))}"
                    )
        elif event.type is EventType.TASK_COMPLETE:
            duration = data.get("duration")
            timing = f" [dim]{duration:.2f}s[/dim]" if duration is not None else ""
            self.console.print(f"[green]OK[/green]   {task}{timing}")
            if self.verbose:
                self.console.print(f"    [dim]output:[/dim] {escape(_preview(data.get('output')))}")
        elif event.type is EventType.TASK_ERROR:
            self.console.print(
                f"[red]FAIL[/red] {task}: {escape(str(data.get('error', '')))}"
            )
        elif event.type is EventType.TASK_SKIPPED:
            self.console.print(
                f"[yellow]SKIP[/yellow] {task}: {escape(str(data.get('error', '')))}"
            )
        elif event.type is EventType.WORKFLOW_ERROR and "summary" not in data:
            self.console.print(f"[red]Workflow rejected:[/red] {escape(str(data.get('error', '')))}")


async def run_workflow_async(
    workflow: WorkflowDef,
    console: Console,
    verbose: bool = False,
    invoker: AgentInvoker | None = None,
) -> ExecutionSummary:
    """Execute a workflow asynchronously, reporting progress on the console.

    Args:
        workflow: The parsed workflow definition.
        console: Rich console for progress output.
        verbose: If True, report dispatches, parameters and outputs.
        invoker: Performs agent invocations. Defaults to the built-in registry.

    Returns:
        The execution summary.

    Raises:
        ConfigurationError: If the workflow's dependency graph is invalid.
    """
    engine = ExecutionEngine(invoker if invoker is not None else create_default_registry())
    engine.subscribe(ConsoleReporter(console, verbose=verbose))

    start_time = time.time()
    summary = await engine.execute(workflow)

    if verbose:
        console.print(f"[dim]Total workflow execution: {time.time() - start_time:.2f}s[/dim]")

    return summary


def display_workflow_details(workflow: WorkflowDef, console: Console) -> None:
    """Display the workflow's name, description and settings.

    Args:
        workflow: The parsed workflow definition.
        console: Rich console for output.
    """
    content = f"[bold]Workflow:[/bold] {escape(workflow.name)}\n"
    if workflow.description:
        content += f"[bold]Description:[/bold] {escape(workflow.description)}\n"
    content += (
        f"[bold]Version:[/bold] {escape(workflow.version)}\n"
        f"[bold]Tasks:[/bold] {len(workflow.tasks)}\n"
        f"[bold]Timeout:[/bold] {workflow.settings.timeout}s per task\n"
        f"[bold]On Failure:[/bold] {workflow.settings.on_failure}"
    )
    console.print(Panel(content, title="[cyan]Workflow[/cyan]", border_style="cyan"))


def display_dry_run(workflow: WorkflowDef, parser: WorkflowParser, console: Console) -> None:
    """Display the execution plan without running anything.

    Args:
        workflow: The parsed workflow definition.
        parser: The parser that produced ``workflow``; renders the graph.
        console: Rich console for output.
    """
    from orchestrator.config.validator import reference_warnings

    console.print(
        Panel(
            Text(parser.generate_dependency_graph(workflow)),
            title="[cyan]Execution Plan (Dry Run)[/cyan]",
            border_style="dim",
        )
    )

    for warning in reference_warnings(workflow):
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")

    console.print("[dim]Dry run: no tasks were executed.[/dim]")


def display_summary(summary: ExecutionSummary, console: Console, verbose: bool = False) -> None:
    """Display the execution summary.

    Args:
        summary: The summary produced by the execution engine.
        console: Rich console for output.
        verbose: If True, include each task's output in the table.
    """
    table = Table(title="Tasks", show_lines=verbose)
    table.add_column("Task", style="cyan")
    table.add_column("Status", width=10)
    table.add_column("Duration", justify="right", width=9)
    table.add_column("Details")

    for task_id, state in summary.tasks.items():
        style = _STATUS_STYLES.get(state.status, "white")
        duration = f"{state.duration:.2f}s" if state.duration is not None else "-"
        if state.status is TaskStatus.SUCCEEDED:
            details = _preview(state.output) if verbose else ""
        else:
            details = state.error or ""
        table.add_row(
            escape(task_id),
            f"[{style}]{state.status.value}[/{style}]",
            duration,
            escape(details),
        )

    console.print(table)

    overall_style = _OVERALL_STYLES[summary.overall_status]
    content = (
        f"[bold]Workflow:[/bold] {escape(summary.workflow_name)}\n"
        f"[bold]Status:[/bold] [{overall_style}]{summary.overall_status.value}[/{overall_style}]\n"
        f"[bold]Succeeded:[/bold] {summary.success_count}\n"
        f"[bold]Failed:[/bold] {summary.failure_count}\n"
        f"[bold]Skipped:[/bold] {summary.skipped_count}\n"
        f"[bold]Elapsed:[/bold] {summary.elapsed_seconds:.2f}s"
    )
    console.print(
        Panel(content, title=f"[{overall_style}]Summary[/{overall_style}]", border_style=overall_style)
    )
