"""Shared utilities for CLI modules."""

import logging
import sys
from typing import NoReturn

import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from automatasaurus.agents import AgentRunner, CopilotAgentRunner
from automatasaurus.config import Config, load_config
from automatasaurus.github import GhIssueTracker, IssueTracker

# Shared Rich console instance for all CLI modules
console = Console()


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich (DEBUG if verbose, else WARNING)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    """Print an error and exit with code 1."""
    console.print(f"[red]Error: {escape(message)}[/red]")
    sys.exit(1)


def load_config_or_exit() -> Config:
    """Load config, exiting with an error if it is invalid."""
    try:
        return load_config()
    except (ValidationError, yaml.YAMLError) as e:
        fail(f"Invalid configuration: {e}")


def make_tracker() -> IssueTracker:
    """Issue tracker for the repository in the current directory."""
    return GhIssueTracker()


def make_agents(config: Config) -> AgentRunner:
    """Agent runner configured from config, exiting if the command can't be parsed."""
    try:
        return CopilotAgentRunner.from_config(config)
    except ValueError as e:
        fail(f"Invalid agent command {config.copilot_command!r}: {e}")


__all__ = [
    "console",
    "configure_logging",
    "fail",
    "load_config_or_exit",
    "make_tracker",
    "make_agents",
]
