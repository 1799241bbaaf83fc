"""CLI module for the Agent Orchestrator.

This module provides the command-line interface using Typer.
"""

from orchestrator.cli.app import app

__all__ = ["app"]
