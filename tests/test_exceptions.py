"""Tests for the exception hierarchy."""

import pytest

from orchestrator.exceptions import (
    ConfigurationError,
    CycleError,
    ExecutionError,
    InterpolationError,
    OrchestratorError,
    TaskError,
    TaskTimeoutError,
    UnknownDependencyError,
)


class TestOrchestratorError:
    """Tests for the base exception."""

    def test_message_only(self) -> None:
        error = OrchestratorError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.suggestion is None
        assert error.file_path is None

    def test_with_suggestion_and_location(self) -> None:
        error = OrchestratorError(
            "Bad thing", suggestion="Do the other thing", file_path="flow.yaml"
        )
        text = str(error)
        assert text.startswith("Bad thing")
        assert "Location: flow.yaml" in text
        assert "Suggestion: Do the other thing" in text
        # The bare message stays clean
        assert error.message == "Bad thing"

    def test_error_type(self) -> None:
        assert ConfigurationError("x").error_type == "ConfigurationError"

    @pytest.mark.parametrize(
        "error_class",
        [ConfigurationError, ExecutionError],
    )
    def test_subclasses_are_catchable_as_base(self, error_class: type) -> None:
        with pytest.raises(OrchestratorError):
            raise error_class("boom")


class TestConfigurationError:
    """Tests for ConfigurationError and its subclasses."""

    def test_errors_are_listed_in_message(self) -> None:
        error = ConfigurationError("Validation failed", errors=["first", "second"])
        assert error.errors == ["first", "second"]
        assert error.message == "Validation failed:\n  - first\n  - second"

    def test_without_errors(self) -> None:
        error = ConfigurationError("Validation failed")
        assert error.errors == []
        assert error.message == "Validation failed"

    def test_cycle_error(self) -> None:
        error = CycleError(["A", "B"])
        assert isinstance(error, ConfigurationError)
        assert error.cycle == ["A", "B"]
        assert "A -> B -> A" in error.message
        assert error.errors == [error.message]

    def test_unknown_dependency_error(self) -> None:
        error = UnknownDependencyError("build", "ghost")
        assert isinstance(error, ConfigurationError)
        assert error.task_id == "build"
        assert error.dependency == "ghost"
        assert error.message == "Task 'build' depends on unknown task 'ghost'"


class TestTaskErrors:
    """Tests for task-level errors."""

    def test_task_error_carries_task_id(self) -> None:
        error = TaskError("failed", task_id="t1")
        assert error.task_id == "t1"
        assert isinstance(error, OrchestratorError)

    def test_interpolation_error(self) -> None:
        error = InterpolationError("t2", "${t1.output}", reason="no output recorded")
        assert isinstance(error, TaskError)
        assert error.task_id == "t2"
        assert error.token == "${t1.output}"
        assert "${t1.output}" in error.message
        assert "no output recorded" in error.message
        assert error.suggestion is not None

    def test_timeout_error(self) -> None:
        error = TaskTimeoutError("slow", 5)
        assert error.task_id == "slow"
        assert error.timeout_seconds == 5
        assert error.message == "Task 'slow' timed out after 5s"
