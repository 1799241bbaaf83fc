"""Abstract base classes for agents and agent invokers.

This module defines the AgentResult dataclass and the two abstractions the
execution engine talks to: an Agent performs one kind of work, and an
AgentInvoker maps an agent kind to whatever performs it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class AgentResult:
    """Normalized outcome of a single agent invocation.

    Attributes:
        success: Whether the agent completed its work.
        output: The agent's output. Only meaningful when ``success`` is True.
        error: Human-readable failure reason. Only set when ``success`` is False.
    """

    success: bool
    """Whether the agent completed its work."""

    output: Any = None
    """The agent's output, recorded in the context store on success."""

    error: str | None = None
    """Failure reason reported by the agent."""

    @classmethod
    def ok(cls, output: Any) -> AgentResult:
        """Build a successful result."""
        return cls(success=True, output=output)

    @classmethod
    def fail(cls, error: str) -> AgentResult:
        """Build a failed result."""
        return cls(success=False, error=error)


class Agent(ABC):
    """A capability that performs the work of one agent kind.

    Implementations are registered by kind in an AgentRegistry and receive
    a task's parameters after interpolation.

    Example:
        >>> class Upper(Agent):
        ...     kind = "upper"
        ...     async def run(self, parameters):
        ...         return AgentResult.ok(str(parameters.get("text", "")).upper())
    """

    kind: str = ""
    """Registry key for this agent."""

    @abstractmethod
    async def run(self, parameters: dict[str, Any]) -> AgentResult:
        """Perform the agent's work.

        Args:
            parameters: The task's parameters with every token resolved.

        Returns:
            AgentResult describing success (with output) or failure.
        """
        ...


class AgentInvoker(ABC):
    """Dispatches a task to the agent registered for its kind.

    The engine is agnostic to how an agent kind maps to actual work. An
    invoker may report failure either by returning ``AgentResult.fail`` or by
    raising; the engine treats both identically.
    """

    @abstractmethod
    async def invoke(self, agent_kind: str, parameters: dict[str, Any]) -> AgentResult:
        """Invoke the agent of the given kind.

        Args:
            agent_kind: The task's ``agent`` field.
            parameters: Resolved task parameters.

        Returns:
            The agent's result.
        """
        ...
