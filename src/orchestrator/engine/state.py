"""Runtime state for a single workflow execution.

This module defines the per-task state table entries and the summary an
execution produces. Both are plain dataclasses owned by the execution engine.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    """Lifecycle of a task within one execution.

    ``pending -> ready -> running -> succeeded | failed``; ``skipped`` is
    reached only through failure propagation, never by dispatch.
    """

    PENDING = "pending"
    READY = "ready"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """True for states that admit no further transition."""
        return self in _TERMINAL


_TERMINAL = frozenset({TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.SKIPPED})


class OverallStatus(str, Enum):
    """Outcome of a whole execution."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass
class TaskRuntimeState:
    """State of one task during one execution.

    Attributes:
        id: The task id.
        status: Current lifecycle status.
        output: The agent's output. Set only on success.
        error: Failure reason. Set only on failure (or the reason for a skip).
        started_at: Monotonic timestamp of dispatch.
        finished_at: Monotonic timestamp of reaching a terminal state.
    """

    id: str
    status: TaskStatus = TaskStatus.PENDING
    output: Any = None
    error: str | None = None
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def duration(self) -> float | None:
        """Seconds between dispatch and completion, if both happened."""
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "id": self.id,
            "status": self.status.value,
            "output": self.output,
            "error": self.error,
            "duration": self.duration,
        }


@dataclass
class ExecutionSummary:
    """Final report of one execution, produced once at the end.

    ``overall_status`` is ``success`` iff nothing failed or was skipped,
    ``failure`` iff nothing succeeded, and ``partial`` otherwise.
    """

    workflow_name: str
    success_count: int
    failure_count: int
    skipped_count: int
    overall_status: OverallStatus
    elapsed_seconds: float = 0.0
    tasks: dict[str, TaskRuntimeState] = field(default_factory=dict)

    @classmethod
    def from_states(
        cls,
        workflow_name: str,
        states: Mapping[str, TaskRuntimeState],
        elapsed_seconds: float = 0.0,
    ) -> ExecutionSummary:
        """Count terminal states and derive the overall status.

        Args:
            workflow_name: Name of the executed workflow.
            states: Final task-state table.
            elapsed_seconds: Wall-clock duration of the execution.

        Returns:
            The execution summary.
        """
        statuses = [s.status for s in states.values()]
        succeeded = statuses.count(TaskStatus.SUCCEEDED)
        failed = statuses.count(TaskStatus.FAILED)
        skipped = statuses.count(TaskStatus.SKIPPED)

        if failed == 0 and skipped == 0:
            overall = OverallStatus.SUCCESS
        elif succeeded == 0:
            overall = OverallStatus.FAILURE
        else:
            overall = OverallStatus.PARTIAL

        return cls(
            workflow_name=workflow_name,
            success_count=succeeded,
            failure_count=failed,
            skipped_count=skipped,
            overall_status=overall,
            elapsed_seconds=elapsed_seconds,
            tasks=dict(states),
        )

    @property
    def succeeded(self) -> bool:
        """True when the overall status is success."""
        return self.overall_status is OverallStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "workflow": self.workflow_name,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "skippedCount": self.skipped_count,
            "overallStatus": self.overall_status.value,
            "elapsedSeconds": round(self.elapsed_seconds, 3),
            "tasks": {task_id: s.to_dict() for task_id, s in self.tasks.items()},
        }
