"""Workflow execution engine for the Agent Orchestrator.

This module provides the ExecutionEngine class, which drives the task state
machine for one workflow execution: it computes ready sets, dispatches ready
tasks concurrently, applies the failure policy, emits lifecycle events, and
produces the final ExecutionSummary.

Concurrency model: every ready task runs as its own asyncio task, but all
state transitions happen on the orchestrating coroutine as completions
arrive, so the task-state table and context store never need a lock.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from orchestrator.agents.base import AgentResult
from orchestrator.engine.context import ContextStore
from orchestrator.engine.events import EventEmitter, EventListener, EventType, WorkflowEvent
from orchestrator.engine.graph import DependencyGraph
from orchestrator.engine.state import ExecutionSummary, TaskRuntimeState, TaskStatus
from orchestrator.exceptions import (
    ConfigurationError,
    ExecutionError,
    InterpolationError,
    TaskTimeoutError,
)

if TYPE_CHECKING:
    from orchestrator.agents.base import AgentInvoker
    from orchestrator.config.schema import SettingsConfig, TaskDef, WorkflowDef

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """Executes a workflow's tasks in dependency order.

    The ExecutionEngine manages the complete lifecycle of an execution:
    1. Build the dependency graph (configuration errors abort before dispatch)
    2. Mark every task pending and emit ``workflow:start``
    3. Dispatch every ready task concurrently, with interpolated parameters
    4. Record outputs, mark failures, and skip what can no longer run
    5. Summarize and emit ``workflow:complete`` or ``workflow:error``

    Failure policy (``settings.on_failure``):
    - stop: skip the failed task's descendants and dispatch nothing new; tasks
      already running finish and their results are recorded
    - continue: skip only the failed task's descendants

    An instance owns its task-state table and context store for the duration
    of one ``execute`` call and refuses a second, concurrent call.

    Example:
        >>> from orchestrator.agents import create_default_registry
        >>> from orchestrator.config.loader import load_workflow
        >>> workflow = load_workflow("workflows/hello-world.yaml")
        >>> engine = ExecutionEngine(create_default_registry())
        >>> summary = await engine.execute(workflow)
        >>> summary.overall_status
        <OverallStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        invoker: AgentInvoker,
        events: EventEmitter | None = None,
    ) -> None:
        """Initialize the ExecutionEngine.

        Args:
            invoker: Performs each task's agent invocation.
            events: Where lifecycle events go. A private emitter is created
                when omitted; attach listeners with ``on``/``subscribe``.
        """
        self.invoker = invoker
        self.events = events if events is not None else EventEmitter()
        self.context = ContextStore()
        self._states: dict[str, TaskRuntimeState] = {}
        self._workflow_name = ""
        self._halted_by: str | None = None
        self._running = False

    def on(self, event_type: EventType | str, listener: EventListener) -> None:
        """Register a listener for one event type."""
        self.events.on(event_type, listener)

    def subscribe(self, listener: EventListener) -> None:
        """Register a listener for every event type."""
        self.events.subscribe(listener)

    @property
    def states(self) -> dict[str, TaskRuntimeState]:
        """Snapshot of the task-state table of the current or last execution."""
        return {task_id: dataclasses.replace(s) for task_id, s in self._states.items()}

    @property
    def is_running(self) -> bool:
        """True while an execution is in progress."""
        return self._running

    async def execute(self, workflow: WorkflowDef) -> ExecutionSummary:
        """Execute every task of a workflow and summarize the outcome.

        Task failures (agent errors, timeouts, unresolved parameter tokens)
        never escape this method; they are reflected in per-task state and in
        the summary.

        Args:
            workflow: A parsed workflow definition.

        Returns:
            The execution summary.

        Raises:
            ConfigurationError: If the dependency graph is invalid. No task
                is touched in that case.
            ExecutionError: If this engine is already executing.
        """
        if self._running:
            raise ExecutionError(
                "ExecutionEngine is already running a workflow",
                suggestion="Create a separate ExecutionEngine for each concurrent execution.",
            )

        self._running = True
        try:
            return await self._execute(workflow)
        finally:
            self._running = False

    async def _execute(self, workflow: WorkflowDef) -> ExecutionSummary:
        """Run the scheduling loop for one execution."""
        self._workflow_name = workflow.name

        try:
            graph = DependencyGraph.build(workflow.tasks)
        except ConfigurationError as e:
            logger.error("Workflow '%s' rejected: %s", workflow.name, e.message)
            self._emit(EventType.WORKFLOW_ERROR, error=e.message)
            raise

        tasks = {task.id: task for task in workflow.tasks}
        position = {task_id: i for i, task_id in enumerate(graph.task_ids)}
        settings = workflow.settings

        self.context = ContextStore()
        self._states = {task.id: TaskRuntimeState(id=task.id) for task in workflow.tasks}
        self._halted_by = None
        start = time.monotonic()

        logger.info(
            "Executing workflow '%s' (%d tasks, timeout=%ss, on_failure=%s)",
            workflow.name,
            len(tasks),
            settings.timeout,
            settings.on_failure,
        )
        self._emit(EventType.WORKFLOW_START, tasks=len(tasks))

        active: dict[asyncio.Task[AgentResult], str] = {}
        try:
            while True:
                if self._halted_by is None:
                    ready = graph.ready_set(self._states)
                    for task_id in ready:
                        self._states[task_id].status = TaskStatus.READY
                    for task_id in ready:
                        if self._halted_by is not None:
                            break
                        self._dispatch(tasks[task_id], settings, graph, active)

                if not active:
                    break

                done, _ = await asyncio.wait(active, return_when=asyncio.FIRST_COMPLETED)
                for finished in sorted(done, key=lambda t: position[active[t]]):
                    task_id = active.pop(finished)
                    self._complete(task_id, finished.result(), settings, graph)
        finally:
            for pending in active:
                pending.cancel()

        # Anything left never ran: halted by the stop policy or stalled upstream
        for task_id in graph.task_ids:
            if not self._states[task_id].status.is_terminal:
                if self._halted_by is not None:
                    reason = f"Workflow stopped after task '{self._halted_by}' failed"
                else:
                    reason = "Blocked by an upstream failure"
                self._skip(task_id, reason)

        summary = ExecutionSummary.from_states(
            workflow.name, self._states, elapsed_seconds=time.monotonic() - start
        )
        logger.info(
            "Workflow '%s' finished: %s (%d succeeded, %d failed, %d skipped)",
            workflow.name,
            summary.overall_status.value,
            summary.success_count,
            summary.failure_count,
            summary.skipped_count,
        )

        if summary.succeeded:
            self._emit(EventType.WORKFLOW_COMPLETE, summary=summary)
        else:
            self._emit(
                EventType.WORKFLOW_ERROR,
                error=(
                    f"{summary.failure_count} task(s) failed, "
                    f"{summary.skipped_count} skipped"
                ),
                summary=summary,
            )
        return summary

    def _dispatch(
        self,
        task: TaskDef,
        settings: SettingsConfig,
        graph: DependencyGraph,
        active: dict[asyncio.Task[AgentResult], str],
    ) -> None:
        """Interpolate a ready task's parameters and start its invocation."""
        state = self._states[task.id]
        state.started_at = time.monotonic()

        try:
            parameters = self.context.interpolate_parameters(
                task.parameters, task.id, allowed=graph.ancestors(task.id)
            )
        except InterpolationError as e:
            self._fail(task.id, e.message, settings, graph)
            return

        state.status = TaskStatus.RUNNING
        logger.debug("Dispatching task '%s' to agent '%s'", task.id, task.agent)
        self._emit(EventType.TASK_START, task.id, agent=task.agent, parameters=parameters)

        invocation = asyncio.create_task(
            self._invoke(task, parameters, settings.timeout), name=f"task:{task.id}"
        )
        active[invocation] = task.id

    async def _invoke(
        self,
        task: TaskDef,
        parameters: dict[str, Any],
        timeout: float,
    ) -> AgentResult:
        """Call the invoker, converting errors and timeouts into failed results."""
        try:
            result = await asyncio.wait_for(
                self.invoker.invoke(task.agent, parameters), timeout=timeout
            )
        except asyncio.TimeoutError:
            return AgentResult.fail(TaskTimeoutError(task.id, timeout).message)
        except Exception as e:
            logger.debug("Agent '%s' raised for task '%s'", task.agent, task.id, exc_info=True)
            return AgentResult.fail(f"{type(e).__name__}: {e}")

        return _normalize_result(result)

    def _complete(
        self,
        task_id: str,
        result: AgentResult,
        settings: SettingsConfig,
        graph: DependencyGraph,
    ) -> None:
        """Apply a finished invocation's outcome to the state table."""
        if not result.success:
            self._fail(task_id, result.error or "Agent reported failure", settings, graph)
            return

        state = self._states[task_id]
        self.context.record(task_id, result.output)
        state.status = TaskStatus.SUCCEEDED
        state.output = result.output
        state.finished_at = time.monotonic()

        logger.debug("Task '%s' succeeded in %.2fs", task_id, state.duration or 0.0)
        self._emit(EventType.TASK_COMPLETE, task_id, output=result.output, duration=state.duration)

    def _fail(
        self,
        task_id: str,
        error: str,
        settings: SettingsConfig,
        graph: DependencyGraph,
    ) -> None:
        """Mark a task failed and apply the failure policy."""
        state = self._states[task_id]
        state.status = TaskStatus.FAILED
        state.error = error
        state.finished_at = time.monotonic()

        logger.warning("Task '%s' failed: %s", task_id, error)
        self._emit(EventType.TASK_ERROR, task_id, error=error, duration=state.duration)

        # Descendants can never see this dependency succeed, under either policy
        for descendant in graph.descendants(task_id):
            if not self._states[descendant].status.is_terminal:
                self._skip(descendant, f"Dependency '{task_id}' failed")

        if settings.on_failure == "stop" and self._halted_by is None:
            self._halted_by = task_id
            logger.info("Stopping dispatch after failure of task '%s'", task_id)

    def _skip(self, task_id: str, reason: str) -> None:
        """Mark a non-terminal task skipped."""
        state = self._states[task_id]
        state.status = TaskStatus.SKIPPED
        state.error = reason
        state.finished_at = time.monotonic()

        logger.debug("Task '%s' skipped: %s", task_id, reason)
        self._emit(EventType.TASK_SKIPPED, task_id, error=reason)

    def _emit(self, event_type: EventType, task_id: str | None = None, **data: Any) -> None:
        """Build and emit a lifecycle event for the current workflow."""
        self.events.emit(
            WorkflowEvent(
                type=event_type,
                workflow=self._workflow_name,
                task_id=task_id,
                data=data,
            )
        )


def _normalize_result(result: Any) -> AgentResult:
    """Accept an AgentResult or a ``{success, output, error}`` mapping.

    Args:
        result: Whatever the invoker returned.

    Returns:
        An AgentResult. Anything unrecognized becomes a failed result.
    """
    if isinstance(result, AgentResult):
        return result

    if isinstance(result, Mapping) and "success" in result:
        if result["success"]:
            return AgentResult.ok(result.get("output"))
        return AgentResult.fail(str(result.get("error") or "Agent reported failure"))

    return AgentResult.fail(
        f"Agent invoker returned an unsupported result of type {type(result).__name__}"
    )
