"""Pytest configuration and fixtures for automatasaurus tests.

FakeTracker and FakeAgents stand in for the gh CLI and the agent CLI. The
fake agents leave review comments on the fake tracker's PRs the way real
reviewer agents do, so the state machine sees them on its next snapshot.
"""

import re
from typing import Dict, List, Optional

import pytest
from click.testing import CliRunner

from automatasaurus.agents import PR_NUMBER_TOKEN, AgentRole, AgentRunner
from automatasaurus.github import Issue, IssueTracker, PRComment, PullRequest
from automatasaurus.markers import (
    ARCHITECT_APPROVED,
    ARCHITECT_CHANGES,
    DESIGNER_APPROVED,
    DESIGNER_CHANGES,
    TESTER_APPROVED,
    TESTER_CHANGES,
)
from automatasaurus.process import ProcessResult

APPROVE = "approve"
CHANGES = "changes"

REVIEWERS = (AgentRole.ARCHITECT, AgentRole.DESIGNER, AgentRole.TESTER)

_MARKERS = {
    (AgentRole.ARCHITECT, APPROVE): ARCHITECT_APPROVED,
    (AgentRole.ARCHITECT, CHANGES): ARCHITECT_CHANGES,
    (AgentRole.DESIGNER, APPROVE): DESIGNER_APPROVED,
    (AgentRole.DESIGNER, CHANGES): DESIGNER_CHANGES,
    (AgentRole.TESTER, APPROVE): TESTER_APPROVED,
    (AgentRole.TESTER, CHANGES): TESTER_CHANGES,
}


class FakeTracker(IssueTracker):
    """In-memory IssueTracker that records every call."""

    def __init__(self, issues: Optional[List[Issue]] = None):
        self.issues: Dict[int, Issue] = {i.number: i for i in issues or []}
        self.pull_requests: Dict[int, PullRequest] = {}
        self.calls: List[tuple] = []
        self.merged: List[tuple] = []
        # PR number -> issue it closes on merge
        self.pr_closes: Dict[int, int] = {}

    def ensure_auth(self) -> None:
        self.calls.append(("ensure_auth",))

    def get_issue(self, number: int) -> Issue:
        self.calls.append(("get_issue", number))
        return self.issues[number]

    def list_open_issues(self, limit: int = 100) -> List[Issue]:
        self.calls.append(("list_open_issues", limit))
        open_issues = [self.issues[n] for n in sorted(self.issues) if self.issues[n].is_open]
        return open_issues[:limit]

    def get_pull_request(self, number: int) -> PullRequest:
        self.calls.append(("get_pull_request", number))
        return self.pull_requests[number]

    def merge_pull_request(self, number: int, method: str = "squash", delete_branch: bool = True) -> None:
        self.merged.append((number, method, delete_branch))
        if number in self.pr_closes:
            self.close(self.pr_closes[number])

    def add_comment(self, pr_number: int, author: str, body: str) -> None:
        pr = self.pull_requests.setdefault(
            pr_number,
            PullRequest(number=pr_number, state="OPEN", title=f"PR {pr_number}", url=""),
        )
        pr.comments.append(PRComment(author=author, body=body))

    def close(self, number: int) -> None:
        self.issues[number].state = "CLOSED"


class FakeAgents(AgentRunner):
    """Scripted agents.

    Each implementation opens a new PR, numbered from pr_number upward, and
    links it to the issue so that merging it closes the issue.

    Args:
        tracker: Tracker whose PRs receive review comments
        pr_number: First PR number handed out (None prints no token)
        reviews: Per-role list of verdicts (APPROVE, CHANGES or None for no
            marker), one per cycle; the last entry repeats
        developer_output: Override the developer's implementation output
    """

    def __init__(
        self,
        tracker: FakeTracker,
        pr_number: Optional[int] = 77,
        reviews: Optional[Dict[AgentRole, List[Optional[str]]]] = None,
        developer_output: Optional[str] = None,
    ):
        self.tracker = tracker
        self.next_pr = pr_number
        self.current_pr: Optional[int] = None
        self.reviews = reviews or {}
        self.developer_output = developer_output
        self.calls: List[tuple] = []
        self._review_counts: Dict[AgentRole, int] = {}

    def calls_for(self, role: AgentRole) -> List[str]:
        return [prompt for r, prompt in self.calls if r == role]

    def _implement(self, prompt: str) -> str:
        if self.developer_output is not None:
            return self.developer_output
        if self.next_pr is None:
            return "Opened a pull request.\n"

        self.current_pr = self.next_pr
        self.next_pr += 1
        self._review_counts = {}
        self.tracker.pull_requests.setdefault(
            self.current_pr,
            PullRequest(number=self.current_pr, state="OPEN", title="impl", url=""),
        )
        match = re.search(r"Implement GitHub issue #(\d+)", prompt)
        if match:
            self.tracker.pr_closes[self.current_pr] = int(match.group(1))
        return f"Created branch\n{PR_NUMBER_TOKEN}={self.current_pr}\n"

    def _review(self, role: AgentRole) -> None:
        script = self.reviews.get(role, [APPROVE])
        index = self._review_counts.get(role, 0)
        self._review_counts[role] = index + 1
        verdict = script[min(index, len(script) - 1)] if script else None
        body = f"**[{role.value.title()}]** review"
        if verdict is not None:
            body += f"\n\n{_MARKERS[(role, verdict)]}"
        self.tracker.add_comment(self.current_pr, role.value, body)

    def run(self, prompt: str, role: Optional[AgentRole] = None) -> ProcessResult:
        self.calls.append((role, prompt))

        if role == AgentRole.DEVELOPER and "Implement GitHub issue" in prompt:
            return ProcessResult(command="copilot", stdout=self._implement(prompt))

        if role in REVIEWERS and ("Review PR #" in prompt or "Verify PR #" in prompt):
            self._review(role)

        return ProcessResult(command="copilot", stdout="done\n")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and config files."""
    monkeypatch.delenv("AUTOMATASAURUS_MAX_ISSUES_PER_RUN", raising=False)
    monkeypatch.delenv("AUTOMATASAURUS_COPILOT_COMMAND", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_tracker():
    """Factory for FakeTracker."""
    return FakeTracker


@pytest.fixture
def make_agents():
    """Factory for FakeAgents."""
    return FakeAgents


@pytest.fixture
def cli_runner():
    """Create a Click test runner."""
    return CliRunner()
