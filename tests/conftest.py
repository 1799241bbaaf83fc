"""Pytest configuration and shared fixtures for Agent Orchestrator tests.

This module contains fixtures used across multiple test modules.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest

from orchestrator.agents.base import AgentInvoker, AgentResult
from orchestrator.agents.registry import AgentRegistry, create_default_registry
from orchestrator.config.schema import WorkflowDef

Behavior = Callable[[dict[str, Any]], Awaitable[AgentResult]]


class ScriptedInvoker(AgentInvoker):
    """Invoker whose per-agent-kind behavior is supplied by each test.

    Every call is recorded as ``(agent_kind, parameters)``. Kinds without a
    scripted behavior succeed with ``"<kind>:done"``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.behaviors: dict[str, Behavior] = {}
        self.active = 0
        self.max_active = 0

    def script(self, agent_kind: str, behavior: Behavior) -> None:
        self.behaviors[agent_kind] = behavior

    def succeed_with(self, agent_kind: str, output: Any, delay: float = 0.0) -> None:
        async def behavior(parameters: dict[str, Any]) -> AgentResult:
            if delay:
                await asyncio.sleep(delay)
            return AgentResult.ok(output)

        self.script(agent_kind, behavior)

    def fail_with(self, agent_kind: str, error: str, delay: float = 0.0) -> None:
        async def behavior(parameters: dict[str, Any]) -> AgentResult:
            if delay:
                await asyncio.sleep(delay)
            return AgentResult.fail(error)

        self.script(agent_kind, behavior)

    @property
    def invoked_kinds(self) -> list[str]:
        return [kind for kind, _ in self.calls]

    async def invoke(self, agent_kind: str, parameters: dict[str, Any]) -> AgentResult:
        self.calls.append((agent_kind, parameters))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            behavior = self.behaviors.get(agent_kind)
            if behavior is None:
                await asyncio.sleep(0)
                return AgentResult.ok(f"{agent_kind}:done")
            return await behavior(parameters)
        finally:
            self.active -= 1


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def registry() -> AgentRegistry:
    """Return a registry holding the built-in agent kinds."""
    return create_default_registry()


@pytest.fixture
def invoker() -> ScriptedInvoker:
    """Return an invoker the test can script per agent kind."""
    return ScriptedInvoker()


@pytest.fixture
def make_workflow() -> Callable[..., WorkflowDef]:
    """Return a factory building a WorkflowDef from task mappings.

    Tests usually give each task its own agent kind so behaviors can be
    scripted per task.
    """

    def factory(
        tasks: list[dict[str, Any]],
        name: str = "test-workflow",
        **settings: Any,
    ) -> WorkflowDef:
        return WorkflowDef.model_validate(
            {"version": "1.0", "name": name, "tasks": tasks, "settings": settings or None}
        )

    return factory


@pytest.fixture
def sample_workflow_yaml() -> str:
    """Return a minimal valid workflow YAML for testing."""
    return """\
version: "1.0"
name: test-workflow
description: A test workflow

tasks:
  - id: task1
    agent: planner
    parameters:
      task: "Hello, world!"
  - id: task2
    agent: coder
    parameters:
      task: "Result: ${task1.output}"
    dependencies: [task1]
"""


@pytest.fixture
def tmp_workflow_file(tmp_path: Path, sample_workflow_yaml: str) -> Path:
    """Create a temporary workflow YAML file."""
    workflow_file = tmp_path / "test-workflow.yaml"
    workflow_file.write_text(sample_workflow_yaml)
    return workflow_file
