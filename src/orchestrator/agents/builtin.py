"""Built-in agent kinds.

The work an agent actually performs lives outside the orchestrator. The
built-in kinds are stand-ins that acknowledge the work they were handed,
which is enough for dry runs, demos, and wiring tests.
"""

from __future__ import annotations

from typing import Any

from orchestrator.agents.base import Agent, AgentResult

BUILTIN_KINDS: tuple[str, ...] = (
    "planner",
    "coder",
    "checker",
    "researcher",
    "frontend",
    "backend",
    "shadcn",
    "blockchain",
    "terraform",
)

# Parameter keys checked, in order, for the text an agent reports back.
_SUBJECT_KEYS = ("task", "prompt", "input", "description")


class EchoAgent(Agent):
    """Agent that reports the task it received as its output.

    Example:
        >>> agent = EchoAgent("planner")
        >>> (await agent.run({"task": "Plan something"})).output
        '[planner] Plan something'
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind

    async def run(self, parameters: dict[str, Any]) -> AgentResult:
        subject = next(
            (str(parameters[key]) for key in _SUBJECT_KEYS if key in parameters),
            None,
        )
        if subject is None:
            subject = ", ".join(f"{k}={v}" for k, v in parameters.items()) or "done"
        return AgentResult.ok(f"[{self.kind}] {subject}")
