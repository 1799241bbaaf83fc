"""Configuration module for the Agent Orchestrator.

This module handles YAML/JSON parsing, batch schema validation, and the
pydantic models for workflow definitions.
"""

from orchestrator.config.loader import (
    WORKFLOW_EXTENSIONS,
    WorkflowParser,
    load_workflow,
    load_workflow_string,
    render_dependency_graph,
)
from orchestrator.config.schema import SettingsConfig, TaskDef, WorkflowDef
from orchestrator.config.validator import reference_warnings, validate_workflow

__all__ = [
    # Loader
    "WORKFLOW_EXTENSIONS",
    "WorkflowParser",
    "load_workflow",
    "load_workflow_string",
    "render_dependency_graph",
    # Schema models
    "SettingsConfig",
    "TaskDef",
    "WorkflowDef",
    # Validator
    "reference_warnings",
    "validate_workflow",
]
