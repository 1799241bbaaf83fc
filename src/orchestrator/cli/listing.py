"""Implementation of the 'workflow list' command.

This module finds workflow files in the conventional locations and shows a
one-line description of each.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from orchestrator.config.loader import WORKFLOW_EXTENSIONS, WorkflowParser
from orchestrator.exceptions import OrchestratorError

if TYPE_CHECKING:
    from orchestrator.config.schema import WorkflowDef

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DIRS: tuple[Path, ...] = (Path(".claude") / "workflows", Path("workflows"))
"""Directories searched in addition to the one given on the command line."""

_IGNORED_DIRS = frozenset({"node_modules", "__pycache__"})


@dataclass
class WorkflowListing:
    """One discovered workflow file.

    Attributes:
        path: Where the file was found.
        workflow: The parsed definition, or None if it failed to parse.
        error: Why parsing failed.
    """

    path: Path
    workflow: WorkflowDef | None = None
    error: str | None = None


def default_search_paths(extra: Path | None = None) -> list[Path]:
    """Return the directories to search, with ``extra`` appended.

    Args:
        extra: Additional directory from ``--path``.

    Returns:
        Search directories, without duplicates.
    """
    paths: list[Path] = list(DEFAULT_SEARCH_DIRS)
    if extra is not None:
        paths.append(extra)

    unique: list[Path] = []
    seen: set[Path] = set()
    for path in paths:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            unique.append(path)
    return unique


def find_workflow_files(directory: Path) -> list[Path]:
    """Recursively find workflow files below a directory.

    Hidden directories and dependency folders are not descended into.

    Args:
        directory: Directory to scan. Missing directories yield nothing.

    Returns:
        Matching files, sorted by path.
    """
    if not directory.is_dir():
        return []

    found: list[Path] = []
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if entry.name.startswith(".") or entry.name in _IGNORED_DIRS:
                continue
            found.extend(find_workflow_files(entry))
        elif entry.suffix.lower() in WORKFLOW_EXTENSIONS:
            found.append(entry)
    return found


def discover_workflows(search_paths: list[Path]) -> list[WorkflowListing]:
    """Find and parse every workflow file in the search paths.

    A file that fails to parse is still listed, with its error.

    Args:
        search_paths: Directories to scan.

    Returns:
        One listing per distinct file, in search order.
    """
    parser = WorkflowParser()
    listings: list[WorkflowListing] = []
    seen: set[Path] = set()

    for directory in search_paths:
        for path in find_workflow_files(directory):
            key = path.resolve()
            if key in seen:
                continue
            seen.add(key)

            try:
                listings.append(WorkflowListing(path=path, workflow=parser.parse(path)))
            except OrchestratorError as e:
                logger.debug("Skipping invalid workflow %s: %s", path, e.message)
                listings.append(WorkflowListing(path=path, error=e.message))

    return listings


def display_workflow_listing(listings: list[WorkflowListing], console: Console) -> None:
    """Display discovered workflows as a table.

    Args:
        listings: Workflows found by ``discover_workflows``.
        console: Rich console for output.
    """
    if not listings:
        console.print("[yellow]No workflow files found.[/yellow]")
        console.print(
            "[dim]Searched .claude/workflows/, workflows/ and the --path directory.[/dim]"
        )
        return

    table = Table(title="Workflows")
    table.add_column("File", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Tasks", justify="right")
    table.add_column("Description")

    for listing in listings:
        if listing.workflow is None:
            table.add_row(escape(str(listing.path)), "[red](invalid)[/red]", "-", "")
            continue
        workflow = listing.workflow
        table.add_row(
            escape(str(listing.path)),
            escape(workflow.name),
            str(len(workflow.tasks)),
            escape(workflow.description or ""),
        )

    console.print(table)
    console.print(f"[dim]{len(listings)} workflow file(s) found.[/dim]")
