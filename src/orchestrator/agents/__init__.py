"""Agents module for the Agent Orchestrator.

This module defines the agent and invoker abstractions, the capability
registry that maps agent kinds to implementations, and the built-in kinds.
"""

from orchestrator.agents.base import Agent, AgentInvoker, AgentResult
from orchestrator.agents.builtin import BUILTIN_KINDS, EchoAgent
from orchestrator.agents.registry import AgentRegistry, create_default_registry

__all__ = [
    "Agent",
    "AgentInvoker",
    "AgentRegistry",
    "AgentResult",
    "BUILTIN_KINDS",
    "EchoAgent",
    "create_default_registry",
]
