"""GitHub integration for automatasaurus.

Issue and pull request data come from the GitHub CLI (gh). The rest of the
package only talks to the IssueTracker interface, so tests can swap in an
in-memory tracker.
"""

import json
import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from automatasaurus.process import ExternalCommandError, run_process

logger = logging.getLogger(__name__)

ISSUE_FIELDS = "number,title,body,state,labels,url"
PR_FIELDS = "number,state,comments,title,url"

T = TypeVar("T")


class GhResponseError(RuntimeError):
    """Raised when gh output cannot be read as the expected JSON payload."""


def _decode(args: List[str], output: str, build: Callable[[Any], T]) -> T:
    """Parse gh JSON output with build, wrapping malformed replies."""
    try:
        return build(json.loads(output))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise GhResponseError(f"Unexpected output from gh {' '.join(args[:2])}: {e!r}") from e


@dataclass
class Issue:
    """GitHub issue snapshot."""

    number: int
    title: str
    body: str = ""
    state: str = "OPEN"
    labels: List[str] = field(default_factory=list)
    url: str = ""

    @property
    def is_open(self) -> bool:
        return self.state.lower() == "open"

    def has_label(self, name: str) -> bool:
        """Case-insensitive label check."""
        wanted = name.lower()
        return any(label.lower() == wanted for label in self.labels)


@dataclass
class PRComment:
    """PR comment information."""

    author: str
    body: str
    created_at: str = ""


@dataclass
class PullRequest:
    """GitHub pull request snapshot, including its comment thread."""

    number: int
    state: str
    title: str
    url: str
    comments: List[PRComment] = field(default_factory=list)


def _label_names(raw_labels: Optional[List[Any]]) -> List[str]:
    """Normalize gh label entries (dicts with a name, or plain strings)."""
    names = []
    for label in raw_labels or []:
        name = label if isinstance(label, str) else (label or {}).get("name")
        if name:
            names.append(name)
    return names


def issue_from_json(data: dict) -> Issue:
    """Build an Issue from a gh --json payload."""
    return Issue(
        number=int(data["number"]),
        title=data.get("title", ""),
        body=data.get("body") or "",
        state=data.get("state") or "OPEN",
        labels=_label_names(data.get("labels")),
        url=data.get("url", ""),
    )


def pull_request_from_json(data: dict) -> PullRequest:
    """Build a PullRequest from a gh --json payload."""
    comments = [
        PRComment(
            author=((comment or {}).get("author") or {}).get("login", "unknown"),
            body=(comment or {}).get("body") or "",
            created_at=(comment or {}).get("createdAt", ""),
        )
        for comment in data.get("comments") or []
    ]
    return PullRequest(
        number=int(data["number"]),
        state=data.get("state", ""),
        title=data.get("title", ""),
        url=data.get("url", ""),
        comments=comments,
    )


def ensure_gh_cli(cwd: Optional[Path] = None) -> None:
    """Ensure gh CLI is installed and authenticated.

    Raises:
        RuntimeError: If gh not found or not authenticated
    """
    if not shutil.which("gh"):
        raise RuntimeError(
            "GitHub CLI (gh) not found.\n\n"
            "Install: https://cli.github.com/\n"
            "  macOS:   brew install gh\n"
            "  Linux:   See https://github.com/cli/cli#installation\n"
            "  Windows: See https://github.com/cli/cli#installation\n"
        )

    try:
        run_process("gh", ["auth", "status"], cwd=cwd, echo=False)
    except ExternalCommandError as e:
        raise RuntimeError(
            "Not authenticated with GitHub.\n\n"
            "Run: gh auth login\n\n"
            "This will open your browser to authenticate.\n"
        ) from e


def gh_command(args: List[str], cwd: Optional[Path] = None) -> str:
    """Run a gh (GitHub CLI) command.

    Args:
        args: Command arguments
        cwd: Working directory

    Returns:
        Command output

    Raises:
        ExternalCommandError: If gh command fails
    """
    result = run_process("gh", args, cwd=cwd, echo=False)
    return result.stdout.strip()


class IssueTracker(ABC):
    """Read/merge access to issues and pull requests."""

    @abstractmethod
    def ensure_auth(self) -> None:
        """Verify the tracker can be used (raise if not)."""

    @abstractmethod
    def get_issue(self, number: int) -> Issue:
        """Fetch a single issue, open or closed."""

    @abstractmethod
    def list_open_issues(self, limit: int = 100) -> List[Issue]:
        """List up to limit open issues."""

    @abstractmethod
    def get_pull_request(self, number: int) -> PullRequest:
        """Fetch a pull request with its comments."""

    @abstractmethod
    def merge_pull_request(
        self, number: int, method: str = "squash", delete_branch: bool = True
    ) -> None:
        """Merge a pull request."""


class GhIssueTracker(IssueTracker):
    """IssueTracker backed by the gh CLI."""

    def __init__(self, cwd: Optional[Path] = None):
        """Initialize the tracker.

        Args:
            cwd: Repository directory gh should run in (default: current directory)
        """
        self.cwd = cwd

    def ensure_auth(self) -> None:
        ensure_gh_cli(cwd=self.cwd)

    def get_issue(self, number: int) -> Issue:
        args = ["issue", "view", str(number), "--json", ISSUE_FIELDS]
        return _decode(args, gh_command(args, cwd=self.cwd), issue_from_json)

    def list_open_issues(self, limit: int = 100) -> List[Issue]:
        args = [
            "issue",
            "list",
            "--state",
            "open",
            "--limit",
            str(limit),
            "--json",
            ISSUE_FIELDS,
        ]
        output = gh_command(args, cwd=self.cwd)
        if not output:
            return []
        return _decode(args, output, lambda items: [issue_from_json(item) for item in items])

    def get_pull_request(self, number: int) -> PullRequest:
        args = ["pr", "view", str(number), "--json", PR_FIELDS]
        return _decode(args, gh_command(args, cwd=self.cwd), pull_request_from_json)

    def merge_pull_request(
        self, number: int, method: str = "squash", delete_branch: bool = True
    ) -> None:
        args = ["pr", "merge", str(number), f"--{method}"]
        if delete_branch:
            args.append("--delete-branch")
        logger.info(f"Merging PR #{number} ({method})")
        run_process("gh", args, cwd=self.cwd, echo=True)
