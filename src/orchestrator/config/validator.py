"""Schema validation for workflow definitions.

This module checks a candidate workflow (the raw mapping read from a file)
and reports every defect it finds rather than stopping at the first. It is a
pure function of its inputs: nothing is raised for bad input and nothing is
mutated.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from orchestrator.config.schema import SettingsConfig
from orchestrator.engine.context import TASK_ID_PATTERN, find_references
from orchestrator.engine.graph import DependencyGraph
from orchestrator.exceptions import CycleError

if TYPE_CHECKING:
    from orchestrator.agents.registry import AgentRegistry
    from orchestrator.config.schema import WorkflowDef


def validate_workflow(
    candidate: Any,
    registry: AgentRegistry | None = None,
) -> list[str]:
    """Check a candidate workflow definition.

    Every check runs and all defects are reported together:
    - ``version`` and ``name`` are present; ``version`` is a string or number
    - ``description``, where given, is a string (workflow and task level)
    - ``tasks`` is a non-empty sequence of mappings
    - every task has an ``id`` and an ``agent``, and the agent kind is known
    - task ids use only letters, digits, ``_`` and ``-``
    - task ids are unique
    - ``parameters`` is a mapping, ``dependencies`` a sequence of strings
    - every dependency names a declared task (forward references allowed)
    - ``settings`` holds a positive integer ``timeout`` and a known ``on_failure``
    - the dependency relation is acyclic

    Args:
        candidate: The raw parsed definition.
        registry: Source of known agent kinds. Defaults to the built-in registry.

    Returns:
        Error messages; an empty list means the candidate is valid.
    """
    if registry is None:
        from orchestrator.agents.registry import create_default_registry

        registry = create_default_registry()

    if not isinstance(candidate, Mapping):
        return [f"Workflow must be a mapping, got {type(candidate).__name__}"]

    errors: list[str] = []

    version = candidate.get("version")
    if version in (None, ""):
        errors.append("Missing required field 'version'")
    elif isinstance(version, bool) or not isinstance(version, str | int | float):
        errors.append(
            f"Field 'version' must be a string or number, got {type(version).__name__}"
        )

    name = candidate.get("name")
    if name in (None, ""):
        errors.append("Missing required field 'name'")
    elif not isinstance(name, str):
        errors.append(f"Field 'name' must be a string, got {type(name).__name__}")

    description = candidate.get("description")
    if description is not None and not isinstance(description, str):
        errors.append(
            f"Field 'description' must be a string, got {type(description).__name__}"
        )

    errors.extend(_validate_settings(candidate.get("settings")))

    tasks = candidate.get("tasks")
    if tasks is None:
        errors.append("Missing required field 'tasks'")
        return errors
    if not _is_sequence(tasks):
        errors.append(f"Field 'tasks' must be a list, got {type(tasks).__name__}")
        return errors
    if not tasks:
        errors.append("Field 'tasks' must contain at least one task")
        return errors

    task_ids = _collect_task_ids(tasks, errors)
    known_ids = set(task_ids)
    dependencies: dict[str, list[str]] = {}
    references_ok = True

    for index, task in enumerate(tasks):
        if not isinstance(task, Mapping):
            continue
        label = _task_label(task, index)

        errors.extend(_validate_agent(label, task.get("agent"), registry))

        task_description = task.get("description")
        if task_description is not None and not isinstance(task_description, str):
            errors.append(
                f"Task {label} field 'description' must be a string, "
                f"got {type(task_description).__name__}"
            )

        parameters = task.get("parameters")
        if parameters is not None and not isinstance(parameters, Mapping):
            errors.append(
                f"Task {label} field 'parameters' must be a mapping, "
                f"got {type(parameters).__name__}"
            )

        dep_errors, deps = _validate_dependencies(label, task.get("dependencies"), known_ids)
        errors.extend(dep_errors)
        if dep_errors:
            references_ok = False

        task_id = task.get("id")
        if isinstance(task_id, str) and task_id:
            dependencies.setdefault(task_id, []).extend(deps)

    # Cycle detection only makes sense once every reference resolves
    if references_ok and len(task_ids) == len(known_ids):
        try:
            DependencyGraph.from_edges(task_ids, dependencies)
        except CycleError as e:
            errors.extend(e.errors)

    return errors


def reference_warnings(workflow: WorkflowDef) -> list[str]:
    """Find parameter tokens that reference tasks outside a task's dependencies.

    A task may read the output of any task it depends on, directly or
    transitively. Other tokens are legal to write but are rejected at dispatch
    time, so the task is bound to fail. Reported as warnings by the CLI.

    Args:
        workflow: A parsed workflow definition.

    Returns:
        Warning messages, one per offending reference.
    """
    warnings: list[str] = []
    known = set(workflow.task_ids)
    graph = DependencyGraph(
        workflow.task_ids, {task.id: task.dependencies for task in workflow.tasks}
    )

    for task in workflow.tasks:
        ancestors = set(graph.ancestors(task.id))
        for ref in find_references(task.parameters):
            if ref == task.id:
                warnings.append(f"Task '{task.id}' references its own output")
            elif ref not in known:
                warnings.append(f"Task '{task.id}' references unknown task '{ref}'")
            elif ref not in ancestors:
                warnings.append(
                    f"Task '{task.id}' references '{ref}' without declaring it "
                    "as a dependency"
                )

    return warnings


def _is_sequence(value: Any) -> bool:
    """True for list-like values, excluding strings and mappings."""
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def _task_label(task: Mapping[str, Any], index: int) -> str:
    """Describe a task for error messages, by id when it has a usable one."""
    task_id = task.get("id")
    if isinstance(task_id, str) and task_id:
        return f"'{task_id}'"
    return f"#{index + 1}"


def _collect_task_ids(tasks: Sequence[Any], errors: list[str]) -> list[str]:
    """Validate task entries and ids, returning valid ids in declaration order.

    Args:
        tasks: The raw task list.
        errors: List that receives error messages.

    Returns:
        Valid task ids, duplicates included, in declaration order.
    """
    task_ids: list[str] = []
    seen: set[str] = set()
    reported: set[str] = set()

    for index, task in enumerate(tasks):
        if not isinstance(task, Mapping):
            errors.append(f"Task #{index + 1} must be a mapping, got {type(task).__name__}")
            continue

        task_id = task.get("id")
        if task_id in (None, ""):
            errors.append(f"Task #{index + 1} is missing required field 'id'")
            continue
        if not isinstance(task_id, str):
            errors.append(
                f"Task #{index + 1} field 'id' must be a string, got {type(task_id).__name__}"
            )
            continue

        if not TASK_ID_PATTERN.match(task_id):
            errors.append(
                f"Task #{index + 1} id '{task_id}' may only contain letters, digits, "
                "'_' and '-', and must not start with '-'"
            )

        if task_id in seen and task_id not in reported:
            errors.append(f"Duplicate task id '{task_id}'")
            reported.add(task_id)
        seen.add(task_id)
        task_ids.append(task_id)

    return task_ids


def _validate_agent(label: str, agent: Any, registry: AgentRegistry) -> list[str]:
    """Validate a task's agent kind against the registry.

    Args:
        label: Task label for messages.
        agent: The raw ``agent`` value.
        registry: Source of known agent kinds.

    Returns:
        List of error messages.
    """
    if agent in (None, ""):
        return [f"Task {label} is missing required field 'agent'"]
    if not isinstance(agent, str):
        return [f"Task {label} field 'agent' must be a string, got {type(agent).__name__}"]
    if not registry.is_known(agent):
        return [
            f"Task {label} uses unknown agent '{agent}'. "
            f"Known agents: {', '.join(registry.known_kinds())}"
        ]
    return []


def _validate_dependencies(
    label: str,
    dependencies: Any,
    known_ids: set[str],
) -> tuple[list[str], list[str]]:
    """Validate a task's dependency list.

    Args:
        label: Task label for messages.
        dependencies: The raw ``dependencies`` value.
        known_ids: Every declared task id.

    Returns:
        Tuple of (error messages, valid dependency ids).
    """
    if dependencies is None:
        return [], []
    if not _is_sequence(dependencies):
        return [
            f"Task {label} field 'dependencies' must be a list of task ids, "
            f"got {type(dependencies).__name__}"
        ], []

    errors: list[str] = []
    deps: list[str] = []
    for dep in dependencies:
        if not isinstance(dep, str):
            errors.append(
                f"Task {label} has a non-string dependency {dep!r}; "
                "dependencies must be task ids"
            )
        elif dep not in known_ids:
            errors.append(f"Task {label} depends on unknown task '{dep}'")
        else:
            deps.append(dep)

    return errors, deps


def _validate_settings(settings: Any) -> list[str]:
    """Validate the ``settings`` block with the SettingsConfig schema.

    Args:
        settings: The raw ``settings`` value, possibly absent.

    Returns:
        List of error messages, one per invalid field.
    """
    if settings is None:
        return []
    if not isinstance(settings, Mapping):
        return [f"Field 'settings' must be a mapping, got {type(settings).__name__}"]

    try:
        SettingsConfig.model_validate(dict(settings))
    except PydanticValidationError as e:
        formatted: list[str] = []
        for err in e.errors():
            loc = ".".join(str(x) for x in err.get("loc", ()))
            msg = err.get("msg", "Unknown error")
            formatted.append(f"settings.{loc}: {msg}" if loc else f"settings: {msg}")
        return formatted

    return []
