"""Agent registry: one capability per agent kind, looked up by name.

This module provides the AgentRegistry class, which is both the source of
known agent kinds for the schema validator and the default AgentInvoker for
the execution engine.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from orchestrator.agents.base import Agent, AgentInvoker, AgentResult
from orchestrator.agents.builtin import BUILTIN_KINDS, EchoAgent

logger = logging.getLogger(__name__)

AgentFactory = Callable[[], Agent]


class AgentRegistry(AgentInvoker):
    """Maps agent kinds to agent implementations with lazy instantiation.

    Agents are created on first use and cached for subsequent invocations,
    so a registry used for several workflows shares one instance per kind.

    Example:
        >>> registry = AgentRegistry()
        >>> registry.register("planner", lambda: EchoAgent("planner"))
        >>> registry.is_known("planner")
        True
        >>> result = await registry.invoke("planner", {"task": "Plan"})
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._factories: dict[str, AgentFactory] = {}
        self._agents: dict[str, Agent] = {}

    def register(self, kind: str, factory: AgentFactory) -> None:
        """Register (or replace) the factory for an agent kind.

        Args:
            kind: The agent kind as written in workflow files.
            factory: Zero-argument callable returning an Agent.

        Raises:
            ValueError: If ``kind`` is empty.
        """
        if not kind:
            raise ValueError("Agent kind cannot be empty")
        self._factories[kind] = factory
        self._agents.pop(kind, None)

    def unregister(self, kind: str) -> None:
        """Remove an agent kind. Unknown kinds are ignored."""
        self._factories.pop(kind, None)
        self._agents.pop(kind, None)

    def is_known(self, kind: str) -> bool:
        """Check whether an agent kind is registered."""
        return kind in self._factories

    def known_kinds(self) -> list[str]:
        """Return the registered agent kinds, sorted."""
        return sorted(self._factories)

    def get(self, kind: str) -> Agent:
        """Get the agent for a kind, creating it if necessary.

        Raises:
            KeyError: If the kind is not registered.
        """
        if kind in self._agents:
            return self._agents[kind]

        agent = self._factories[kind]()
        self._agents[kind] = agent
        return agent

    async def invoke(self, agent_kind: str, parameters: dict[str, Any]) -> AgentResult:
        """Run the agent registered for ``agent_kind``.

        An unregistered kind yields a failed result instead of raising, since
        the engine turns every invocation problem into a task failure.
        """
        if not self.is_known(agent_kind):
            return AgentResult.fail(
                f"Unknown agent kind '{agent_kind}'. "
                f"Known kinds: {', '.join(self.known_kinds())}"
            )

        agent = self.get(agent_kind)
        logger.debug("Invoking agent '%s'", agent_kind)
        return await agent.run(parameters)

    def __contains__(self, kind: object) -> bool:
        return kind in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def create_default_registry() -> AgentRegistry:
    """Create a registry with every built-in agent kind registered.

    Returns:
        An AgentRegistry holding an EchoAgent for each built-in kind.
    """
    registry = AgentRegistry()
    for kind in BUILTIN_KINDS:
        registry.register(kind, lambda kind=kind: EchoAgent(kind))
    return registry
