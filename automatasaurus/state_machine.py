"""Review state machine for a single issue.

This module drives one issue from "ready" to a terminal outcome: an optional
design pass, implementation by the developer agent, then up to
MAX_REVIEW_CYCLES rounds of architect / designer / tester review with fixes
in between. The allowed states and transitions are declared as data and
enforced by the transitions library.

    ready ──> blocked
      │
      ├──> designing ──┐
      └────────────────┴──> implementing ──> reviewing <──> fixing
                                                │
                                                ├──> approved
                                                └──> escalated

Any non-terminal state can move to "failed" when an external call raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from rich.console import Console
from transitions import Machine

from automatasaurus import prompts
from automatasaurus.agents import AgentRole, AgentRunner, PR_NUMBER_TOKEN, extract_pr_number
from automatasaurus.dependencies import find_blocking_dependencies, is_ui_issue
from automatasaurus.github import IssueTracker
from automatasaurus.markers import (
    ExactMarkerParser,
    MarkerParser,
    Verdict,
    get_markers_from_comments,
)

logger = logging.getLogger(__name__)
console = Console()

MAX_REVIEW_CYCLES = 3


class MissingResultTokenError(RuntimeError):
    """Raised when the developer agent's output contains no PR number."""


@dataclass
class Approved:
    """All required reviewers approved the PR."""

    issue_number: int
    pr_number: int
    cycles: int
    merged: bool = False


@dataclass
class Escalated:
    """No consensus approval within MAX_REVIEW_CYCLES.

    inconclusive is True when the last cycle had neither full approval nor
    an explicit change request.
    """

    issue_number: int
    pr_number: int
    cycles: int
    inconclusive: bool = False


@dataclass
class Blocked:
    """The issue has open dependencies; nothing was run."""

    issue_number: int
    dependencies: List[int] = field(default_factory=list)


@dataclass
class Failed:
    """An external call failed; the error was re-raised to the caller."""

    issue_number: int
    error: BaseException


Outcome = Union[Approved, Escalated, Blocked, Failed]


class ReviewStateMachine:
    """Works one issue through implementation and review.

    Example usage:
        >>> sm = ReviewStateMachine(42, tracker, agents, merge=True)
        >>> outcome = sm.run()
        >>> isinstance(outcome, Approved)
        True
    """

    STATES = [
        "ready",
        "blocked",
        "designing",
        "implementing",
        "reviewing",
        "fixing",
        "approved",
        "escalated",
        "failed",
    ]

    TERMINAL_STATES = frozenset({"blocked", "approved", "escalated", "failed"})

    TRANSITIONS = [
        {"trigger": "block", "source": "ready", "dest": "blocked"},
        {"trigger": "design", "source": "ready", "dest": "designing"},
        {"trigger": "implement", "source": ["ready", "designing"], "dest": "implementing"},
        # reviewing -> reviewing is the retry after an inconclusive cycle
        {"trigger": "start_review", "source": ["implementing", "reviewing", "fixing"], "dest": "reviewing"},
        {"trigger": "request_fixes", "source": "reviewing", "dest": "fixing"},
        {"trigger": "approve", "source": "reviewing", "dest": "approved"},
        {"trigger": "escalate", "source": "reviewing", "dest": "escalated"},
        {
            "trigger": "fail",
            "source": ["ready", "designing", "implementing", "reviewing", "fixing"],
            "dest": "failed",
        },
    ]

    def __init__(
        self,
        issue_number: int,
        tracker: IssueTracker,
        agents: AgentRunner,
        merge: bool = False,
        merge_method: str = "squash",
        open_issue_limit: int = 200,
        open_issue_numbers: Optional[Iterable[int]] = None,
        marker_parser: Optional[MarkerParser] = None,
    ) -> None:
        """Initialize the state machine.

        Args:
            issue_number: Issue to work
            tracker: Source of issue / PR data and merge action
            agents: Runs the agent roles
            merge: Merge the PR once every required reviewer approves
            merge_method: gh merge strategy (squash, merge, rebase)
            open_issue_limit: How many open issues to snapshot for dependency checks
            open_issue_numbers: Pre-fetched open-issue snapshot (fetched if None)
            marker_parser: Parser for review markers (exact matching by default)
        """
        self.issue_number = issue_number
        self.tracker = tracker
        self.agents = agents
        self.merge = merge
        self.merge_method = merge_method
        self.open_issue_limit = open_issue_limit
        self.open_issue_numbers = (
            set(open_issue_numbers) if open_issue_numbers is not None else None
        )
        self.marker_parser = marker_parser or ExactMarkerParser()

        # Per-run cycle state
        self.cycle = 0
        self.needs_ui = False
        self.pr_number: Optional[int] = None
        self.outcome: Optional[Outcome] = None

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="ready",
            auto_transitions=False,
            send_event=False,
            after_state_change="_log_state_change",
        )

    @property
    def current_state(self) -> str:
        return str(getattr(self, "state"))

    def is_terminal(self) -> bool:
        return self.current_state in self.TERMINAL_STATES

    def _log_state_change(self) -> None:
        logger.debug(f"Issue #{self.issue_number}: -> {self.current_state} (cycle {self.cycle})")

    def run(self) -> Outcome:
        """Run the issue to a terminal outcome.

        Returns:
            Approved, Escalated or Blocked

        Raises:
            ExternalCommandError: If any agent or gh invocation fails
            MissingResultTokenError: If no PR number could be read from the developer
        """
        try:
            self.outcome = self._run()
        except Exception as e:
            if not self.is_terminal():
                self.fail()
            self.outcome = Failed(self.issue_number, e)
            raise
        return self.outcome

    def _run(self) -> Outcome:
        issue = self.tracker.get_issue(self.issue_number)

        if self.open_issue_numbers is None:
            open_issues = self.tracker.list_open_issues(limit=self.open_issue_limit)
            self.open_issue_numbers = {i.number for i in open_issues}

        blocking = find_blocking_dependencies(issue, self.open_issue_numbers, self.tracker)
        if blocking:
            self.block()
            deps = ", ".join(f"#{dep}" for dep in blocking)
            console.print(f"\n[yellow]BLOCKED: Issue #{self.issue_number} is blocked on {deps}[/yellow]")
            return Blocked(self.issue_number, blocking)

        self.needs_ui = is_ui_issue(issue)

        if self.needs_ui:
            self.design()
            self.agents.run(prompts.design_spec_prompt(self.issue_number), AgentRole.DESIGNER)

        self.implement()
        result = self.agents.run(prompts.implement_prompt(self.issue_number), AgentRole.DEVELOPER)
        pr_number = extract_pr_number(result.output)
        if pr_number is None:
            raise MissingResultTokenError(
                f"Developer did not print {PR_NUMBER_TOKEN}=... (cannot continue)."
            )
        self.pr_number = pr_number
        logger.info(f"Issue #{self.issue_number} implemented in PR #{pr_number}")

        verdict = Verdict.INCONCLUSIVE
        for cycle in range(1, MAX_REVIEW_CYCLES + 1):
            self.cycle = cycle
            self.start_review()
            verdict = self._review_cycle(pr_number)

            if verdict is Verdict.APPROVED:
                return self._finish_approved(pr_number)

            if cycle == MAX_REVIEW_CYCLES:
                break

            if verdict is Verdict.CHANGES_REQUESTED:
                self.request_fixes()
                self.agents.run(prompts.address_feedback_prompt(pr_number), AgentRole.DEVELOPER)
            else:
                logger.info(f"PR #{pr_number}: no verdict in cycle {cycle}, reviewing again")

        self.escalate()
        if verdict is Verdict.CHANGES_REQUESTED:
            console.print(
                f"\n[red]ESCALATED: PR #{pr_number} still has change requests "
                f"after {self.cycle} cycles.[/red]"
            )
        else:
            console.print(
                f"\n[red]ESCALATED: PR #{pr_number} has no consensus approval "
                f"after {self.cycle} cycles.[/red]"
            )
        return Escalated(
            self.issue_number,
            pr_number,
            self.cycle,
            inconclusive=verdict is Verdict.INCONCLUSIVE,
        )

    def _review_cycle(self, pr_number: int) -> Verdict:
        """Run every reviewer once, then read their markers off the PR."""
        self.agents.run(prompts.architect_review_prompt(pr_number), AgentRole.ARCHITECT)
        if self.needs_ui:
            self.agents.run(prompts.designer_review_prompt(pr_number), AgentRole.DESIGNER)
        self.agents.run(prompts.tester_review_prompt(pr_number), AgentRole.TESTER)

        pr = self.tracker.get_pull_request(pr_number)
        markers = get_markers_from_comments(pr.comments, self.marker_parser)
        verdict = markers.verdict(self.needs_ui)
        logger.debug(f"PR #{pr_number} cycle {self.cycle}: {markers} -> {verdict.value}")
        return verdict

    def _finish_approved(self, pr_number: int) -> Approved:
        suffix = " (merging...)" if self.merge else ""
        console.print(f"\n[green]SUCCESS: PR #{pr_number} is ready{suffix}[/green]")
        if self.merge:
            self.tracker.merge_pull_request(pr_number, method=self.merge_method, delete_branch=True)
        self.approve()
        return Approved(self.issue_number, pr_number, self.cycle, merged=self.merge)
