"""Tests for batch workflow validation.

This module tests:
- Acceptance of valid definitions
- Each individual defect the validator reports
- That every defect is reported together, not just the first
- Reference warnings for tokens outside a task's dependencies
"""

from __future__ import annotations

from typing import Any

import pytest

from orchestrator.agents.base import Agent, AgentResult
from orchestrator.agents.registry import AgentRegistry
from orchestrator.config.schema import WorkflowDef
from orchestrator.config.validator import reference_warnings, validate_workflow


def _workflow(tasks: Any, **extra: Any) -> dict[str, Any]:
    return {"version": "1.0", "name": "test-workflow", "tasks": tasks, **extra}


class TestValidWorkflows:
    """Definitions that pass validation."""

    def test_single_planner_task(self) -> None:
        candidate = _workflow(
            [{"id": "task1", "agent": "planner", "parameters": {"task": "Plan something"}}]
        )
        assert validate_workflow(candidate) == []

    def test_chain_with_settings(self) -> None:
        candidate = _workflow(
            [
                {"id": "a", "agent": "planner"},
                {"id": "b", "agent": "coder", "dependencies": ["a"]},
                {"id": "c", "agent": "checker", "dependencies": ["a", "b"]},
            ],
            settings={"timeout": 60, "on_failure": "continue"},
        )
        assert validate_workflow(candidate) == []

    def test_forward_reference(self) -> None:
        candidate = _workflow(
            [
                {"id": "b", "agent": "coder", "dependencies": ["a"]},
                {"id": "a", "agent": "planner"},
            ]
        )
        assert validate_workflow(candidate) == []

    def test_custom_registry(self) -> None:
        class Noop(Agent):
            async def run(self, parameters: dict[str, Any]) -> AgentResult:
                return AgentResult.ok(None)

        registry = AgentRegistry()
        registry.register("custom", Noop)

        assert validate_workflow(_workflow([{"id": "a", "agent": "custom"}]), registry) == []
        errors = validate_workflow(_workflow([{"id": "a", "agent": "planner"}]), registry)
        assert errors and "unknown agent 'planner'" in errors[0]

    def test_does_not_mutate_candidate(self) -> None:
        candidate = _workflow([{"id": "a", "agent": "planner"}])
        before = repr(candidate)
        validate_workflow(candidate)
        assert repr(candidate) == before


class TestInvalidWorkflows:
    """Definitions that fail validation."""

    def test_unknown_agent(self) -> None:
        errors = validate_workflow(_workflow([{"id": "task1", "agent": "unknown-agent"}]))
        assert len(errors) >= 1
        assert any("unknown-agent" in e for e in errors)
        # Known kinds are listed to help fix the typo
        assert any("planner" in e for e in errors)

    def test_not_a_mapping(self) -> None:
        errors = validate_workflow(["not", "a", "mapping"])
        assert errors == ["Workflow must be a mapping, got list"]

    def test_missing_top_level_fields(self) -> None:
        errors = validate_workflow({})
        assert "Missing required field 'version'" in errors
        assert "Missing required field 'name'" in errors
        assert "Missing required field 'tasks'" in errors

    def test_tasks_not_a_list(self) -> None:
        errors = validate_workflow(_workflow({"id": "a"}))
        assert any("'tasks' must be a list" in e for e in errors)

    def test_empty_tasks(self) -> None:
        errors = validate_workflow(_workflow([]))
        assert "Field 'tasks' must contain at least one task" in errors

    def test_missing_task_id(self) -> None:
        errors = validate_workflow(_workflow([{"agent": "planner"}]))
        assert "Task #1 is missing required field 'id'" in errors

    def test_missing_agent(self) -> None:
        errors = validate_workflow(_workflow([{"id": "a"}]))
        assert "Task 'a' is missing required field 'agent'" in errors

    def test_duplicate_id_reported_once(self) -> None:
        errors = validate_workflow(
            _workflow(
                [
                    {"id": "a", "agent": "planner"},
                    {"id": "a", "agent": "coder"},
                    {"id": "a", "agent": "checker"},
                ]
            )
        )
        assert errors.count("Duplicate task id 'a'") == 1

    def test_unknown_dependency(self) -> None:
        errors = validate_workflow(
            _workflow([{"id": "a", "agent": "planner", "dependencies": ["ghost"]}])
        )
        assert "Task 'a' depends on unknown task 'ghost'" in errors

    def test_bad_parameter_and_dependency_types(self) -> None:
        errors = validate_workflow(
            _workflow(
                [{"id": "a", "agent": "planner", "parameters": "text", "dependencies": "b"}]
            )
        )
        assert any("'parameters' must be a mapping" in e for e in errors)
        assert any("'dependencies' must be a list" in e for e in errors)

    @pytest.mark.parametrize(
        ("settings", "fragment"),
        [
            ({"timeout": 0}, "settings.timeout"),
            ({"timeout": "slow"}, "settings.timeout"),
            ({"on_failure": "retry"}, "settings.on_failure"),
            ("fast", "'settings' must be a mapping"),
        ],
    )
    def test_invalid_settings(self, settings: Any, fragment: str) -> None:
        errors = validate_workflow(_workflow([{"id": "a", "agent": "planner"}], settings=settings))
        assert any(fragment in e for e in errors)

    def test_cycle(self) -> None:
        errors = validate_workflow(
            _workflow(
                [
                    {"id": "A", "agent": "planner", "dependencies": ["B"]},
                    {"id": "B", "agent": "coder", "dependencies": ["A"]},
                ]
            )
        )
        assert len(errors) == 1
        assert "cycle" in errors[0]
        assert "A" in errors[0] and "B" in errors[0]

    def test_self_dependency_is_a_cycle(self) -> None:
        errors = validate_workflow(
            _workflow([{"id": "A", "agent": "planner", "dependencies": ["A"]}])
        )
        assert errors == ["Dependency cycle detected between tasks: A -> A"]

    def test_all_defects_reported_together(self) -> None:
        errors = validate_workflow(
            {
                "version": "1.0",
                "settings": {"timeout": 0},
                "tasks": [
                    {"id": "a", "agent": "planner"},
                    {"id": "a", "agent": "wizard"},
                    {"agent": "coder", "dependencies": ["ghost"]},
                ],
            }
        )
        assert "Missing required field 'name'" in errors
        assert any(e.startswith("settings.timeout") for e in errors)
        assert "Duplicate task id 'a'" in errors
        assert any("unknown agent 'wizard'" in e for e in errors)
        assert "Task #3 is missing required field 'id'" in errors
        assert "Task #3 depends on unknown task 'ghost'" in errors

    @pytest.mark.parametrize("task_id", ["step.one", "step two", "-lead"])
    def test_id_outside_token_grammar(self, task_id: str) -> None:
        errors = validate_workflow(_workflow([{"id": task_id, "agent": "planner"}]))
        assert errors == [
            f"Task #1 id '{task_id}' may only contain letters, digits, '_' and '-', "
            "and must not start with '-'"
        ]

    def test_dependency_on_bad_id_reports_only_the_id(self) -> None:
        errors = validate_workflow(
            _workflow(
                [
                    {"id": "step.one", "agent": "planner"},
                    {"id": "next", "agent": "coder", "dependencies": ["step.one"]},
                ]
            )
        )
        assert len(errors) == 1
        assert "step.one" in errors[0]

    @pytest.mark.parametrize(
        ("version", "type_name"),
        [({"major": 1}, "dict"), ([1, 0], "list"), (True, "bool")],
    )
    def test_version_must_be_scalar(self, version: Any, type_name: str) -> None:
        candidate = _workflow([{"id": "a", "agent": "planner"}])
        candidate["version"] = version
        errors = validate_workflow(candidate)
        assert errors == [f"Field 'version' must be a string or number, got {type_name}"]

    def test_description_types(self) -> None:
        errors = validate_workflow(
            _workflow(
                [{"id": "a", "agent": "planner", "description": ["not", "text"]}],
                description={"text": "nested"},
            )
        )
        assert errors == [
            "Field 'description' must be a string, got dict",
            "Task 'a' field 'description' must be a string, got list",
        ]

    def test_type_errors_join_the_batch(self) -> None:
        errors = validate_workflow(
            {
                "version": ["1"],
                "name": "batch",
                "description": 42,
                "tasks": [
                    {"id": "a.b", "agent": "wizard"},
                    {"id": "c", "agent": "planner", "dependencies": ["ghost"]},
                ],
            }
        )
        assert "Field 'version' must be a string or number, got list" in errors
        assert "Field 'description' must be a string, got int" in errors
        assert any(e.startswith("Task #1 id 'a.b'") for e in errors)
        assert any("unknown agent 'wizard'" in e for e in errors)
        assert "Task 'c' depends on unknown task 'ghost'" in errors


class TestReferenceWarnings:
    """Tests for reference_warnings."""

    def _parse(self, tasks: list[dict[str, Any]]) -> WorkflowDef:
        return WorkflowDef.model_validate(_workflow(tasks))

    def test_declared_reference_is_clean(self) -> None:
        workflow = self._parse(
            [
                {"id": "a", "agent": "planner"},
                {
                    "id": "b",
                    "agent": "coder",
                    "parameters": {"task": "${a.output}"},
                    "dependencies": ["a"],
                },
            ]
        )
        assert reference_warnings(workflow) == []

    def test_transitive_dependency_reference_is_clean(self) -> None:
        workflow = self._parse(
            [
                {"id": "a", "agent": "planner"},
                {"id": "b", "agent": "coder", "dependencies": ["a"]},
                {
                    "id": "c",
                    "agent": "checker",
                    "parameters": {"plan": "${a.output}", "code": "${b.output}"},
                    "dependencies": ["b"],
                },
            ]
        )
        assert reference_warnings(workflow) == []

    def test_undeclared_unknown_and_self_references(self) -> None:
        workflow = self._parse(
            [
                {"id": "a", "agent": "planner", "parameters": {"task": "${a.output}"}},
                {
                    "id": "b",
                    "agent": "coder",
                    "parameters": {"task": "${a.output}", "more": ["${ghost.output}"]},
                },
            ]
        )
        warnings = reference_warnings(workflow)
        assert warnings == [
            "Task 'a' references its own output",
            "Task 'b' references 'a' without declaring it as a dependency",
            "Task 'b' references unknown task 'ghost'",
        ]
