"""Entry point for running orchestrator as a module.

Usage:
    python -m orchestrator
"""

from orchestrator.cli.app import app


def main() -> None:
    """Main entry point for the workflow CLI."""
    app()


if __name__ == "__main__":
    main()
