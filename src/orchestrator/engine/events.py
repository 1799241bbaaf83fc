"""Lifecycle events emitted during workflow execution.

The execution engine reports progress by emitting WorkflowEvent objects to
an EventEmitter. Presentation layers (the CLI's console reporter, tests)
subscribe listeners; the engine behaves identically with none attached.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Kinds of lifecycle events."""

    WORKFLOW_START = "workflow:start"
    WORKFLOW_COMPLETE = "workflow:complete"
    WORKFLOW_ERROR = "workflow:error"
    TASK_START = "task:start"
    TASK_COMPLETE = "task:complete"
    TASK_ERROR = "task:error"
    TASK_SKIPPED = "task:skipped"


@dataclass
class WorkflowEvent:
    """A single lifecycle notification.

    Attributes:
        type: What happened.
        workflow: Name of the workflow being executed.
        task_id: The task concerned, for task-level events.
        data: Event-specific payload. ``workflow:complete`` and
            ``workflow:error`` carry ``summary``; ``workflow:error`` also
            carries ``error``; ``task:complete`` carries ``output``;
            ``task:error`` and ``task:skipped`` carry ``error``.
        timestamp: Wall-clock time the event was created.
    """

    type: EventType
    workflow: str
    task_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


EventListener = Callable[[WorkflowEvent], None]


class EventEmitter:
    """Delivers events to listeners registered per event type or for all events.

    A listener that raises is logged and skipped; it cannot affect
    execution or prevent delivery to other listeners.

    Example:
        >>> emitter = EventEmitter()
        >>> emitter.on(EventType.TASK_ERROR, lambda e: print(e.task_id))
        >>> emitter.subscribe(lambda e: print(e.type.value))
    """

    def __init__(self) -> None:
        """Initialize an emitter with no listeners."""
        self._listeners: dict[EventType, list[EventListener]] = {}
        self._global: list[EventListener] = []

    def on(self, event_type: EventType | str, listener: EventListener) -> None:
        """Register a listener for one event type.

        Args:
            event_type: An EventType or its string value (e.g. ``"task:error"``).
            listener: Callable receiving the event.
        """
        self._listeners.setdefault(EventType(event_type), []).append(listener)

    def subscribe(self, listener: EventListener) -> None:
        """Register a listener for every event type."""
        self._global.append(listener)

    def off(self, listener: EventListener, event_type: EventType | str | None = None) -> None:
        """Remove a listener.

        Args:
            listener: The listener to remove.
            event_type: Only remove it from this type. When omitted, the
                listener is removed everywhere.
        """
        if event_type is None:
            self._global = [fn for fn in self._global if fn != listener]
            types = list(self._listeners)
        else:
            types = [EventType(event_type)]

        for t in types:
            self._listeners[t] = [fn for fn in self._listeners.get(t, []) if fn != listener]

    @property
    def listener_count(self) -> int:
        """Total number of registered listeners."""
        return len(self._global) + sum(len(v) for v in self._listeners.values())

    def emit(self, event: WorkflowEvent) -> None:
        """Deliver an event to its type's listeners, then to global listeners."""
        for listener in [*self._listeners.get(event.type, []), *self._global]:
            try:
                listener(event)
            except Exception:
                logger.warning(
                    "Event listener %r failed handling %s", listener, event.type.value,
                    exc_info=True,
                )
