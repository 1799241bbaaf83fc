"""Workflow engine module for the Agent Orchestrator.

This module contains the execution engine, the dependency graph, the
context store used for output interpolation, runtime state, and lifecycle
events.
"""

from orchestrator.engine.context import ContextStore, find_references
from orchestrator.engine.events import EventEmitter, EventType, WorkflowEvent
from orchestrator.engine.graph import DependencyGraph
from orchestrator.engine.state import (
    ExecutionSummary,
    OverallStatus,
    TaskRuntimeState,
    TaskStatus,
)
from orchestrator.engine.workflow import ExecutionEngine

__all__ = [
    "ContextStore",
    "DependencyGraph",
    "EventEmitter",
    "EventType",
    "ExecutionEngine",
    "ExecutionSummary",
    "OverallStatus",
    "TaskRuntimeState",
    "TaskStatus",
    "WorkflowEvent",
    "find_references",
]
