"""Tests for the lifecycle event emitter."""

from __future__ import annotations

import logging

import pytest

from orchestrator.engine.events import EventEmitter, EventType, WorkflowEvent


def _event(event_type: EventType, task_id: str | None = None) -> WorkflowEvent:
    return WorkflowEvent(type=event_type, workflow="w", task_id=task_id)


class TestEventEmitter:
    """Tests for EventEmitter."""

    def test_typed_listener_only_sees_its_type(self) -> None:
        emitter = EventEmitter()
        seen: list[WorkflowEvent] = []
        emitter.on(EventType.TASK_ERROR, seen.append)

        emitter.emit(_event(EventType.TASK_START, "a"))
        emitter.emit(_event(EventType.TASK_ERROR, "a"))

        assert [e.type for e in seen] == [EventType.TASK_ERROR]

    def test_string_event_type(self) -> None:
        emitter = EventEmitter()
        seen: list[WorkflowEvent] = []
        emitter.on("task:complete", seen.append)

        emitter.emit(_event(EventType.TASK_COMPLETE, "a"))

        assert len(seen) == 1

    def test_unknown_string_event_type(self) -> None:
        with pytest.raises(ValueError):
            EventEmitter().on("task:exploded", lambda e: None)

    def test_global_listener_sees_everything_after_typed(self) -> None:
        emitter = EventEmitter()
        order: list[str] = []
        emitter.subscribe(lambda e: order.append(f"global:{e.type.value}"))
        emitter.on(EventType.WORKFLOW_START, lambda e: order.append("typed"))

        emitter.emit(_event(EventType.WORKFLOW_START))
        emitter.emit(_event(EventType.WORKFLOW_COMPLETE))

        assert order == ["typed", "global:workflow:start", "global:workflow:complete"]

    def test_off(self) -> None:
        emitter = EventEmitter()
        seen: list[WorkflowEvent] = []
        emitter.on(EventType.TASK_START, seen.append)
        emitter.subscribe(seen.append)
        assert emitter.listener_count == 2

        emitter.off(seen.append)
        emitter.emit(_event(EventType.TASK_START, "a"))

        assert seen == []
        assert emitter.listener_count == 0

    def test_failing_listener_is_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        emitter = EventEmitter()
        seen: list[WorkflowEvent] = []

        def broken(event: WorkflowEvent) -> None:
            raise RuntimeError("listener bug")

        emitter.subscribe(broken)
        emitter.subscribe(seen.append)

        with caplog.at_level(logging.WARNING, logger="orchestrator.engine.events"):
            emitter.emit(_event(EventType.TASK_START, "a"))

        assert len(seen) == 1
        assert "failed handling task:start" in caplog.text

    def test_no_listeners(self) -> None:
        EventEmitter().emit(_event(EventType.WORKFLOW_START))
