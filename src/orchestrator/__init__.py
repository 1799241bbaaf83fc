"""Agent Orchestrator - run multi-agent workflows defined in YAML or JSON.

A workflow is a set of named tasks, each bound to an agent kind, with
explicit dependencies between them. Task parameters may reference earlier
tasks' outputs with ``${task_id.output}`` tokens. The engine runs tasks in
dependency order, concurrently where the graph allows, and reports progress
through lifecycle events.

Example:
    Run a workflow from the command line::

        $ workflow run workflows/hello-world.yaml --verbose

    Or use the library programmatically::

        from orchestrator.agents import create_default_registry
        from orchestrator.config.loader import load_workflow
        from orchestrator.engine.workflow import ExecutionEngine

        workflow = load_workflow("workflows/hello-world.yaml")
        engine = ExecutionEngine(create_default_registry())
        summary = await engine.execute(workflow)

Modules:
    config: Workflow parsing, schema validation, and the pydantic models.
    engine: Execution engine, dependency graph, context store, and events.
    agents: Agent abstractions and the agent-kind registry.
    cli: Command-line interface commands.
    exceptions: Custom exception hierarchy.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
