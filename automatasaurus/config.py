"""Configuration management for automatasaurus."""

import logging
import os
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".automatasaurus.yaml"

# Environment variables that override values from the config file
ENV_MAX_ISSUES_PER_RUN = "AUTOMATASAURUS_MAX_ISSUES_PER_RUN"
ENV_COPILOT_COMMAND = "AUTOMATASAURUS_COPILOT_COMMAND"

DEFAULT_ALLOW_TOOLS = ["write", "shell(gh)", "shell(git)"]
DEFAULT_ALLOW_URLS = ["github.com"]


class Config(BaseModel):
    """automatasaurus configuration."""

    max_issues_per_run: int = Field(default=20, gt=0)
    open_issue_limit: int = Field(default=200, gt=0)
    copilot_command: str = "copilot"
    allow_tools: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOW_TOOLS))
    allow_urls: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOW_URLS))
    merge_method: Literal["squash", "merge", "rebase"] = "squash"


def find_config_file(start_path: Path) -> Optional[Path]:
    """Find .automatasaurus.yaml by walking up the directory tree.

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to config file, or None if not found
    """
    current = start_path.resolve()

    while True:
        config_file = current / CONFIG_FILENAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _env_overrides() -> dict:
    """Collect config values set through the environment."""
    overrides: dict = {}

    max_issues = os.environ.get(ENV_MAX_ISSUES_PER_RUN, "").strip()
    if max_issues:
        # Left as a string so pydantic reports a non-numeric value
        overrides["max_issues_per_run"] = max_issues

    command = os.environ.get(ENV_COPILOT_COMMAND, "").strip()
    if command:
        overrides["copilot_command"] = command

    return overrides


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from .automatasaurus.yaml plus environment overrides.

    Args:
        path: Directory to start the config search from (default: current directory)

    Returns:
        Loaded configuration (defaults if no file is found)

    Raises:
        pydantic.ValidationError: If a value is invalid (e.g. a non-positive cap)
    """
    if path is None:
        path = Path.cwd()

    data: dict = {}
    config_file = find_config_file(path)
    if config_file is not None:
        logger.debug(f"Loading config from {config_file}")
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}

    data.update(_env_overrides())
    return Config(**data)
