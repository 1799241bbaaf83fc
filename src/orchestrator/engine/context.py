"""Context store for task outputs and parameter interpolation.

This module provides the ContextStore class, which records each task's
output during an execution and substitutes ``${task_id.output}`` tokens in
later tasks' parameters.
"""

from __future__ import annotations

import json
import re
from collections.abc import Collection, Mapping
from typing import Any

from orchestrator.exceptions import ExecutionError, InterpolationError

# Task ids: a letter, digit or underscore, then letters, digits, "_" or "-"
TASK_ID_GRAMMAR = r"[A-Za-z0-9_][A-Za-z0-9_-]*"
TASK_ID_PATTERN = re.compile(rf"^{TASK_ID_GRAMMAR}\Z")

# Pattern to match ${task_id.output} or ${task_id.output.field.subfield}
OUTPUT_REF_PATTERN = re.compile(
    rf"\$\{{\s*(?P<task>{TASK_ID_GRAMMAR})\.output"
    r"(?P<path>(?:\.[A-Za-z0-9_\-]+)*)\s*\}"
)


def to_text(value: Any) -> str:
    """Render a recorded output as text for substitution.

    Strings are used as-is, mappings and sequences are serialized as JSON,
    and any other value goes through ``str``. ``None`` renders as empty text.

    Args:
        value: The recorded output (or a field of it).

    Returns:
        The text form of ``value``.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict | list | tuple):
        return json.dumps(value, default=str)
    return str(value)


class ContextStore:
    """Append-only record of task outputs for a single execution.

    Each task's output is written exactly once. Reads happen through
    ``interpolate``, which the execution engine calls when dispatching a task
    whose dependencies have all succeeded.

    Example:
        >>> store = ContextStore()
        >>> store.record("task1", "Hello from task1")
        >>> store.interpolate("Result: ${task1.output}", "task2")
        'Result: Hello from task1'
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._outputs: dict[str, Any] = {}

    def record(self, task_id: str, output: Any) -> None:
        """Store a task's output.

        Args:
            task_id: The task that produced the output.
            output: The agent's output.

        Raises:
            ExecutionError: If the task already has a recorded output.
        """
        if task_id in self._outputs:
            raise ExecutionError(
                f"Output for task '{task_id}' was already recorded",
                suggestion="A task may only complete once per execution.",
            )
        self._outputs[task_id] = output

    def has_output(self, task_id: str) -> bool:
        """Check whether a task's output has been recorded."""
        return task_id in self._outputs

    def get_output(self, task_id: str) -> Any:
        """Get a recorded output.

        Raises:
            KeyError: If the task has no recorded output.
        """
        return self._outputs[task_id]

    @property
    def outputs(self) -> dict[str, Any]:
        """A copy of all recorded outputs, keyed by task id."""
        return dict(self._outputs)

    def interpolate(
        self,
        template: str,
        consuming_task_id: str,
        allowed: Collection[str] | None = None,
    ) -> str:
        """Replace every output token in a string.

        ``${task_id.output}`` becomes the text form of that task's output.
        ``${task_id.output.field}`` reaches into a mapping (or list, by index)
        output first. Text without tokens is returned unchanged.

        Args:
            template: The string to interpolate.
            consuming_task_id: The task whose parameter this is, for errors.
            allowed: Task ids the consuming task may read from, normally its
                transitive dependencies. None permits any recorded output.

        Returns:
            The interpolated string.

        Raises:
            InterpolationError: If a token references a task outside
                ``allowed``, a task without a recorded output, or a field the
                output does not have.
        """

        def replace_ref(match: re.Match[str]) -> str:
            ref_task = match.group("task")
            if allowed is not None and ref_task not in allowed:
                raise InterpolationError(
                    consuming_task_id,
                    match.group(0),
                    reason=f"'{ref_task}' is not a dependency of '{consuming_task_id}'",
                )
            if ref_task not in self._outputs:
                raise InterpolationError(
                    consuming_task_id,
                    match.group(0),
                    reason=f"no output recorded for task '{ref_task}'",
                )

            value = self._outputs[ref_task]
            path = match.group("path")
            if path:
                value = self._resolve_path(value, path[1:].split("."), consuming_task_id, match)
            return to_text(value)

        return OUTPUT_REF_PATTERN.sub(replace_ref, template)

    def interpolate_parameters(
        self,
        value: Any,
        consuming_task_id: str,
        allowed: Collection[str] | None = None,
    ) -> Any:
        """Recursively interpolate every string in a parameter structure.

        Mappings and lists are rebuilt with interpolated contents; non-string
        leaves are returned untouched.

        Args:
            value: A parameter value (typically the task's parameter dict).
            consuming_task_id: The task whose parameters these are.
            allowed: Task ids the consuming task may read from, or None.

        Returns:
            A new structure with every string interpolated.

        Raises:
            InterpolationError: If any token cannot be resolved.
        """
        if isinstance(value, str):
            return self.interpolate(value, consuming_task_id, allowed)
        if isinstance(value, Mapping):
            return {
                k: self.interpolate_parameters(v, consuming_task_id, allowed)
                for k, v in value.items()
            }
        if isinstance(value, list | tuple):
            return [
                self.interpolate_parameters(item, consuming_task_id, allowed) for item in value
            ]
        return value

    @staticmethod
    def _resolve_path(
        value: Any,
        parts: list[str],
        consuming_task_id: str,
        match: re.Match[str],
    ) -> Any:
        """Walk ``parts`` into ``value``, raising InterpolationError on a miss."""
        for part in parts:
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
                value = value[int(part)]
            else:
                raise InterpolationError(
                    consuming_task_id,
                    match.group(0),
                    reason=f"output of '{match.group('task')}' has no field '{part}'",
                )
        return value

    def __len__(self) -> int:
        return len(self._outputs)


def find_references(value: Any) -> list[str]:
    """List the task ids referenced by output tokens in a parameter structure.

    Args:
        value: A parameter value, searched recursively.

    Returns:
        Referenced task ids in order of first appearance, without repeats.
    """
    found: dict[str, None] = {}

    def walk(item: Any) -> None:
        if isinstance(item, str):
            for match in OUTPUT_REF_PATTERN.finditer(item):
                found.setdefault(match.group("task"), None)
        elif isinstance(item, Mapping):
            for v in item.values():
                walk(v)
        elif isinstance(item, list | tuple):
            for v in item:
                walk(v)

    walk(value)
    return list(found)
