"""Agent CLI integration.

Agents are driven through a single command-line tool (GitHub Copilot CLI by
default). Each invocation gets a free-text prompt and, optionally, the role
the agent should play. The only thing read back from an agent's output is
the PR number token printed by the developer.
"""

import logging
import re
import shlex
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from automatasaurus.config import DEFAULT_ALLOW_TOOLS, DEFAULT_ALLOW_URLS, Config
from automatasaurus.process import ProcessResult, run_process

logger = logging.getLogger(__name__)

PR_NUMBER_TOKEN = "AUTOMATASAURUS_PR_NUMBER"

_TOKEN_PATTERN = re.compile(rf"{PR_NUMBER_TOKEN}\s*=\s*(\d+)")
_FALLBACK_PATTERN = re.compile(r"\bPR\s*#(\d+)\b", re.IGNORECASE)


class AgentRole(str, Enum):
    """Roles an agent can be asked to play."""

    ARCHITECT = "architect"
    DEVELOPER = "developer"
    DESIGNER = "designer"
    TESTER = "tester"
    PRODUCT_OWNER = "product-owner"


def extract_pr_number(text: str) -> Optional[int]:
    """Pull the PR number out of agent output.

    Looks for AUTOMATASAURUS_PR_NUMBER=<n> first, then the first "PR #<n>"
    anywhere in the text.

    Returns:
        The PR number, or None if neither form is present
    """
    match = _TOKEN_PATTERN.search(text or "")
    if match:
        return int(match.group(1))
    fallback = _FALLBACK_PATTERN.search(text or "")
    return int(fallback.group(1)) if fallback else None


def split_command(raw: Optional[str]) -> Tuple[str, List[str]]:
    """Split a configured agent command into executable and prefix args.

    Examples:
        "copilot" -> ("copilot", [])
        'npx "@github/copilot" --model x' -> ("npx", ["@github/copilot", "--model", "x"])
    """
    parts = shlex.split(raw.strip()) if raw and raw.strip() else []
    if not parts:
        return "copilot", []
    return parts[0], parts[1:]


class AgentRunner(ABC):
    """Runs an agent with a prompt and returns its captured output."""

    @abstractmethod
    def run(self, prompt: str, role: Optional[AgentRole] = None) -> ProcessResult:
        """Invoke the agent.

        Raises:
            ExternalCommandError: If the agent process fails
        """


class CopilotAgentRunner(AgentRunner):
    """AgentRunner for the Copilot CLI (or a compatible command)."""

    def __init__(
        self,
        command: str = "copilot",
        prefix_args: Optional[Sequence[str]] = None,
        allow_tools: Optional[Sequence[str]] = None,
        allow_urls: Optional[Sequence[str]] = None,
        cwd: Optional[Path] = None,
    ):
        self.command = command
        self.prefix_args = list(prefix_args or [])
        self.allow_tools = list(DEFAULT_ALLOW_TOOLS if allow_tools is None else allow_tools)
        self.allow_urls = list(DEFAULT_ALLOW_URLS if allow_urls is None else allow_urls)
        self.cwd = cwd

    @classmethod
    def from_config(cls, config: Config, cwd: Optional[Path] = None) -> "CopilotAgentRunner":
        command, prefix_args = split_command(config.copilot_command)
        return cls(
            command=command,
            prefix_args=prefix_args,
            allow_tools=config.allow_tools,
            allow_urls=config.allow_urls,
            cwd=cwd,
        )

    def build_args(self, prompt: str, role: Optional[AgentRole] = None) -> List[str]:
        """Build the argument list for one invocation."""
        args = list(self.prefix_args)
        if role:
            args.append(f"--agent={AgentRole(role).value}")
        args.extend(["-p", prompt])
        for tool in self.allow_tools:
            args.extend(["--allow-tool", tool])
        for url in self.allow_urls:
            args.extend(["--allow-url", url])
        return args

    def run(self, prompt: str, role: Optional[AgentRole] = None) -> ProcessResult:
        logger.info(f"Invoking {self.command} as {AgentRole(role).value if role else 'default agent'}")
        return run_process(self.command, self.build_args(prompt, role), cwd=self.cwd, echo=True)
