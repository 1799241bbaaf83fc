"""Workflow file parser.

This module handles loading YAML or JSON workflow files, running the schema
validator over them, and materializing a normalized WorkflowDef with
defaults applied. It also renders the deterministic dependency diagram used
by dry runs and the validate command.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from orchestrator.config.schema import WorkflowDef
from orchestrator.config.validator import validate_workflow
from orchestrator.engine.graph import DependencyGraph
from orchestrator.exceptions import ConfigurationError

if TYPE_CHECKING:
    from orchestrator.agents.registry import AgentRegistry

logger = logging.getLogger(__name__)

WORKFLOW_EXTENSIONS: tuple[str, ...] = (".yaml", ".yml", ".json")
"""File extensions recognized as workflow definitions."""

SourceFormat = Literal["yaml", "json"]


class WorkflowParser:
    """Loads, validates, and normalizes workflow definitions.

    This class handles:
    - YAML parsing with line number tracking for error messages
    - JSON parsing for ``.json`` files
    - Batch schema validation (every defect reported at once)
    - Default application through the pydantic schema

    Example:
        >>> parser = WorkflowParser()
        >>> workflow = parser.parse("workflows/hello-world.yaml")
        >>> print(parser.generate_dependency_graph(workflow))
    """

    def __init__(self, registry: AgentRegistry | None = None) -> None:
        """Initialize the parser.

        Args:
            registry: Source of known agent kinds for validation. Defaults to
                the built-in registry.
        """
        if registry is None:
            from orchestrator.agents.registry import create_default_registry

            registry = create_default_registry()

        self.registry = registry
        self._yaml = YAML()
        self._yaml.preserve_quotes = True

    def parse(self, path: str | Path) -> WorkflowDef:
        """Load a workflow definition from a file.

        Args:
            path: Path to a ``.yaml``, ``.yml`` or ``.json`` file.

        Returns:
            A validated, normalized WorkflowDef.

        Raises:
            ConfigurationError: If the file is missing or unreadable, cannot
                be parsed, or fails validation.
        """
        path = Path(path)

        if not path.exists():
            raise ConfigurationError(
                f"Workflow file not found: {path}",
                suggestion="Check that the file path is correct and the file exists.",
            )

        if not path.is_file():
            raise ConfigurationError(
                f"Path is not a file: {path}",
                suggestion="Provide a path to a YAML or JSON file, not a directory.",
            )

        suffix = path.suffix.lower()
        if suffix not in WORKFLOW_EXTENSIONS:
            raise ConfigurationError(
                f"Unsupported workflow file type '{suffix or path.name}'",
                suggestion=f"Use one of: {', '.join(WORKFLOW_EXTENSIONS)}",
                file_path=str(path),
            )

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read workflow file '{path}': {e}",
                suggestion="Check file permissions and ensure the file is readable.",
            ) from e

        fmt: SourceFormat = "json" if suffix == ".json" else "yaml"
        return self.parse_string(content, fmt=fmt, source_path=path)

    def parse_string(
        self,
        content: str,
        fmt: SourceFormat = "yaml",
        source_path: Path | None = None,
    ) -> WorkflowDef:
        """Load a workflow definition from a string.

        Args:
            content: The YAML or JSON content.
            fmt: Which syntax ``content`` uses.
            source_path: Optional path for error messages.

        Returns:
            A validated, normalized WorkflowDef.

        Raises:
            ConfigurationError: If the content cannot be parsed or fails validation.
        """
        source = str(source_path) if source_path else "<string>"
        data = self._load_data(content, fmt, source)

        if data is None:
            raise ConfigurationError(
                f"Empty workflow definition: {source}",
                suggestion="Add a version, a name and at least one task.",
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid workflow format in '{source}': "
                f"expected a mapping, got {type(data).__name__}",
                suggestion="The top level of a workflow must be a mapping with a 'tasks' list.",
            )

        return self.from_mapping(data, source)

    def from_mapping(self, data: dict[str, Any], source: str = "<mapping>") -> WorkflowDef:
        """Validate an already-parsed definition and build the model.

        Args:
            data: The raw definition.
            source: Description of where the data came from, for errors.

        Returns:
            A validated, normalized WorkflowDef.

        Raises:
            ConfigurationError: Carrying every defect the validator found.
        """
        errors = validate_workflow(data, self.registry)
        if errors:
            raise ConfigurationError(
                f"Workflow validation failed in '{source}'",
                errors=errors,
                suggestion="Fix the validation errors listed above and try again.",
                file_path=None if source.startswith("<") else source,
            )

        try:
            workflow = WorkflowDef.model_validate(data)
        except PydanticValidationError as e:
            formatted = [
                f"{'.'.join(str(x) for x in err.get('loc', ()))}: {err.get('msg', 'Unknown error')}"
                for err in e.errors()
            ]
            raise ConfigurationError(
                f"Workflow validation failed in '{source}'",
                errors=formatted,
                suggestion="Check the workflow definition against the schema.",
            ) from e

        # Validation already rejected cycles; building the graph here keeps
        # the parse result's shape guarantee independent of the validator.
        DependencyGraph.build(workflow.tasks)

        logger.debug(
            "Parsed workflow '%s' with %d task(s) from %s",
            workflow.name,
            len(workflow.tasks),
            source,
        )
        return workflow

    def generate_dependency_graph(self, workflow: WorkflowDef) -> str:
        """Render the workflow's tasks and dependency edges as text.

        The output lists tasks in declaration order with their agent kind and
        incoming edges, followed by the execution stages. It depends only on
        the definition, so repeated calls produce identical text.

        Args:
            workflow: A parsed workflow definition.

        Returns:
            Multi-line diagram text.
        """
        return render_dependency_graph(workflow)

    def _load_data(self, content: str, fmt: SourceFormat, source: str) -> Any:
        """Parse raw text into Python data, mapping syntax errors to ConfigurationError."""
        if fmt == "json":
            try:
                return json.loads(content) if content.strip() else None
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON syntax in '{source}' at line {e.lineno}, "
                    f"column {e.colno}: {e.msg}",
                    suggestion="Check for trailing commas, unquoted keys, or missing brackets.",
                ) from e

        try:
            return self._yaml.load(content)
        except YAMLError as e:
            # Extract line number from the YAML error if available
            line_info = ""
            if hasattr(e, "problem_mark") and e.problem_mark is not None:
                mark = e.problem_mark
                line_info = f" at line {mark.line + 1}, column {mark.column + 1}"  # type: ignore[union-attr]

            raise ConfigurationError(
                f"Invalid YAML syntax in '{source}'{line_info}: {e}",
                suggestion="Check the YAML syntax. Common issues include incorrect "
                "indentation, missing colons, or unquoted special characters.",
            ) from e


def render_dependency_graph(workflow: WorkflowDef) -> str:
    """Render a deterministic text diagram of a workflow's dependency graph.

    Args:
        workflow: A parsed workflow definition.

    Returns:
        Multi-line diagram text.
    """
    graph = DependencyGraph.build(workflow.tasks)
    width = max(len(task.id) for task in workflow.tasks)

    lines = [f"Dependency graph: {workflow.name}", ""]
    for task in workflow.tasks:
        incoming = ", ".join(task.dependencies) if task.dependencies else "(root)"
        lines.append(f"  {task.id.ljust(width)}  [{task.agent}]  <- {incoming}")

    lines.append("")
    lines.append("Execution stages:")
    for number, stage in enumerate(graph.stages(), 1):
        lines.append(f"  {number}. {', '.join(stage)}")

    return "\n".join(lines)


def load_workflow(path: str | Path, registry: AgentRegistry | None = None) -> WorkflowDef:
    """Convenience function to load a workflow definition.

    Args:
        path: Path to the workflow file.
        registry: Optional source of known agent kinds.

    Returns:
        A validated WorkflowDef.

    Raises:
        ConfigurationError: If loading or validation fails.
    """
    return WorkflowParser(registry).parse(path)


def load_workflow_string(
    content: str,
    fmt: SourceFormat = "yaml",
    registry: AgentRegistry | None = None,
) -> WorkflowDef:
    """Convenience function to load a workflow definition from a string.

    Args:
        content: The YAML or JSON content.
        fmt: Which syntax ``content`` uses.
        registry: Optional source of known agent kinds.

    Returns:
        A validated WorkflowDef.

    Raises:
        ConfigurationError: If loading or validation fails.
    """
    return WorkflowParser(registry).parse_string(content, fmt=fmt)
