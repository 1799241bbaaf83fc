"""Exception hierarchy for the Agent Orchestrator.

This module defines all custom exceptions used throughout the application.
All exceptions inherit from OrchestratorError and support an optional
suggestion to help users resolve issues.

Two families matter to callers:

- ConfigurationError (and its subclasses) is raised before any task is
  dispatched and carries every defect that was found.
- TaskError (and its subclasses) describes a single task's failure. It is
  recorded in that task's runtime state and never escapes
  ``ExecutionEngine.execute``.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base exception for all Agent Orchestrator errors.

    Attributes:
        suggestion: Optional actionable advice for resolving the error.
        file_path: Optional path to the file where the error occurred.
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        file_path: str | None = None,
    ) -> None:
        """Initialize an OrchestratorError.

        Args:
            message: The error message describing what went wrong.
            suggestion: Optional advice for resolving the error.
            file_path: Optional path to the file where the error occurred.
        """
        self.suggestion = suggestion
        self.file_path = file_path
        super().__init__(message)

    @property
    def message(self) -> str:
        """The bare error message, without location or suggestion."""
        return self.args[0] if self.args else ""

    def __str__(self) -> str:
        """Format the error message with location and suggestion."""
        msg = self.message
        if self.file_path:
            msg += f"\n\nLocation: {self.file_path}"
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg

    @property
    def error_type(self) -> str:
        """Return the type name for display purposes."""
        return self.__class__.__name__


class ConfigurationError(OrchestratorError):
    """Raised when a workflow definition is invalid.

    This includes unreadable or malformed files, schema violations, unknown
    agent kinds, and cyclic or dangling dependencies. The complete list of
    defects is available in ``errors``; the message enumerates all of them.

    Attributes:
        errors: Every defect found, one message per entry.
    """

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        suggestion: str | None = None,
        file_path: str | None = None,
    ) -> None:
        """Initialize a ConfigurationError.

        Args:
            message: Summary of what went wrong.
            errors: Individual defect messages. Appended to the message.
            suggestion: Optional advice for resolving the error.
            file_path: Optional path to the offending workflow file.
        """
        self.errors = list(errors) if errors else []
        if self.errors:
            message = message + ":\n  - " + "\n  - ".join(self.errors)
        super().__init__(message, suggestion, file_path)


class CycleError(ConfigurationError):
    """Raised when the task dependency relation contains a cycle.

    Attributes:
        cycle: Task ids on the cycle, in traversal order. The first id is
            repeated implicitly (``A -> B -> A`` is reported as ``["A", "B"]``).
    """

    def __init__(self, cycle: list[str], file_path: str | None = None) -> None:
        self.cycle = list(cycle)
        path = " -> ".join([*self.cycle, self.cycle[0]]) if self.cycle else ""
        detail = f"Dependency cycle detected between tasks: {path}"
        super().__init__(
            detail,
            suggestion="Remove one of the dependencies so the tasks form a DAG.",
            file_path=file_path,
        )
        self.errors = [detail]


class UnknownDependencyError(ConfigurationError):
    """Raised when a task depends on an id that no task declares.

    Attributes:
        task_id: The task holding the dangling reference.
        dependency: The missing task id.
    """

    def __init__(
        self, task_id: str, dependency: str, file_path: str | None = None
    ) -> None:
        self.task_id = task_id
        self.dependency = dependency
        detail = f"Task '{task_id}' depends on unknown task '{dependency}'"
        super().__init__(
            detail,
            suggestion="Check the dependency id for typos or declare the missing task.",
            file_path=file_path,
        )
        self.errors = [detail]


class ExecutionError(OrchestratorError):
    """Raised when the execution engine is misused.

    Examples are starting a second execution on an engine that is still
    running, or recording a task's output twice.
    """

    pass


class TaskError(OrchestratorError):
    """A single task failed.

    Instances are stored as the ``error`` of the failed task's runtime state
    (as text) and reported through events; they never propagate out of an
    execution.

    Attributes:
        task_id: The task that failed.
    """

    def __init__(
        self,
        message: str,
        task_id: str,
        suggestion: str | None = None,
    ) -> None:
        self.task_id = task_id
        super().__init__(message, suggestion)


class InterpolationError(TaskError):
    """Raised when a parameter token cannot be resolved.

    A task is only dispatched once every declared dependency has succeeded,
    and may only read the outputs of its transitive dependencies. An
    unresolved token therefore means the definition references a task it
    does not depend on, or a field the output lacks.

    Attributes:
        token: The full token text, e.g. ``${task1.output}``.
    """

    def __init__(self, task_id: str, token: str, reason: str | None = None) -> None:
        self.token = token
        message = f"Task '{task_id}' references unresolved value {token}"
        if reason:
            message += f" ({reason})"
        super().__init__(
            message,
            task_id,
            suggestion="Declare the referenced task in 'dependencies' and check its id.",
        )


class TaskTimeoutError(TaskError):
    """Raised when an agent invocation exceeds the configured timeout.

    Attributes:
        timeout_seconds: The limit that was exceeded.
    """

    def __init__(self, task_id: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Task '{task_id}' timed out after {timeout_seconds}s",
            task_id,
            suggestion="Increase settings.timeout in the workflow definition.",
        )
