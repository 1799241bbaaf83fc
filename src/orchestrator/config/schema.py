"""Pydantic models for workflow definitions.

This module defines the normalized in-memory model a workflow file is parsed
into. Defaults (settings, empty parameters and dependencies) are applied
here, so every consumer sees a complete definition.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from orchestrator.engine.context import TASK_ID_GRAMMAR

DEFAULT_TIMEOUT_SECONDS = 300
"""Per-task timeout applied when a workflow does not set one."""

DEFAULT_ON_FAILURE = "stop"
"""Failure policy applied when a workflow does not set one."""


class SettingsConfig(BaseModel):
    """Execution settings for a workflow."""

    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=1)
    """Maximum seconds a single task's agent invocation may take."""

    on_failure: Literal["stop", "continue"] = DEFAULT_ON_FAILURE
    """
    Failure policy:
    - stop: skip the failed task's descendants and dispatch nothing new (default)
    - continue: skip only the failed task's descendants; other branches keep running
    """

    @field_validator("timeout", mode="before")
    @classmethod
    def reject_bool_timeout(cls, v: Any) -> Any:
        """Reject booleans, which pydantic would otherwise accept as 0/1."""
        if isinstance(v, bool):
            raise ValueError("timeout must be a positive integer number of seconds")
        return v


class TaskDef(BaseModel):
    """Definition for a single task in the workflow."""

    id: str = Field(min_length=1, pattern=rf"^{TASK_ID_GRAMMAR}$")
    """Unique identifier for this task: letters, digits, ``_`` and ``-``."""

    agent: str = Field(min_length=1)
    """Agent kind that performs the task."""

    description: str | None = None
    """Human-readable description of the task's purpose."""

    parameters: dict[str, Any] = Field(default_factory=dict)
    """Values passed to the agent. Strings may embed ${task_id.output} tokens."""

    dependencies: list[str] = Field(default_factory=list)
    """Ids of tasks that must succeed before this one runs."""

    @field_validator("parameters", mode="before")
    @classmethod
    def default_parameters(cls, v: Any) -> Any:
        """Treat an explicit null as no parameters."""
        return {} if v is None else v

    @field_validator("dependencies", mode="before")
    @classmethod
    def default_dependencies(cls, v: Any) -> Any:
        """Treat an explicit null as no dependencies."""
        return [] if v is None else v

    @field_validator("dependencies")
    @classmethod
    def dedupe_dependencies(cls, v: list[str]) -> list[str]:
        """Drop repeated dependency ids, keeping first occurrence order."""
        return list(dict.fromkeys(v))


class WorkflowDef(BaseModel):
    """Top-level workflow definition."""

    version: str
    """Definition format version, e.g. '1.0'."""

    name: str
    """Workflow name shown in progress output."""

    description: str | None = None
    """Human-readable workflow description."""

    tasks: list[TaskDef] = Field(min_length=1)
    """Tasks in declaration order."""

    settings: SettingsConfig = Field(default_factory=SettingsConfig)
    """Execution settings."""

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        """Accept numeric versions (YAML reads ``version: 1.0`` as a float)."""
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("settings", mode="before")
    @classmethod
    def default_settings(cls, v: Any) -> Any:
        """Treat an explicit null as default settings."""
        return {} if v is None else v

    @model_validator(mode="after")
    def validate_references(self) -> WorkflowDef:
        """Ensure task ids are unique and every dependency is declared."""
        seen: set[str] = set()
        for task in self.tasks:
            if task.id in seen:
                raise ValueError(f"Duplicate task id '{task.id}'")
            seen.add(task.id)

        for task in self.tasks:
            for dep in task.dependencies:
                if dep not in seen:
                    raise ValueError(
                        f"Task '{task.id}' depends on unknown task '{dep}'"
                    )
        return self

    @property
    def task_ids(self) -> list[str]:
        """Task ids in declaration order."""
        return [task.id for task in self.tasks]

    def get_task(self, task_id: str) -> TaskDef | None:
        """Find a task by id.

        Args:
            task_id: The task id to find.

        Returns:
            The task definition if found, None otherwise.
        """
        return next((t for t in self.tasks if t.id == task_id), None)
