"""Issue workflow commands (work, work-all, queue)."""

from typing import List, Optional, Set

import click
from rich.markup import escape
from rich.table import Table

from automatasaurus.batch import BatchRunner, ready_queue
from automatasaurus.cli._utils import console, fail, load_config_or_exit, make_agents, make_tracker
from automatasaurus.ids import parse_issue_number
from automatasaurus.scheduler import priority_rank
from automatasaurus.state_machine import (
    Approved,
    Blocked,
    Escalated,
    Outcome,
    ReviewStateMachine,
)

_RANK_NAMES = {0: "high", 1: "medium", 2: "low"}


def _describe(outcome: Outcome) -> str:
    """One-word outcome plus detail for the summary table."""
    if isinstance(outcome, Approved):
        return "merged" if outcome.merged else "approved"
    if isinstance(outcome, Escalated):
        return "escalated (no verdict)" if outcome.inconclusive else "escalated"
    if isinstance(outcome, Blocked):
        return "blocked on " + ", ".join(f"#{d}" for d in outcome.dependencies)
    return "failed"


def _print_summary(outcomes: List[Outcome]) -> None:
    if not outcomes:
        return

    table = Table(title="Work-all Results")
    table.add_column("Issue", style="cyan")
    table.add_column("PR", style="magenta")
    table.add_column("Cycles", justify="right")
    table.add_column("Outcome", style="white")

    for outcome in outcomes:
        pr_number = getattr(outcome, "pr_number", None)
        cycles = getattr(outcome, "cycles", None)
        table.add_row(
            f"#{outcome.issue_number}",
            f"#{pr_number}" if pr_number else "-",
            str(cycles) if cycles else "-",
            _describe(outcome),
        )

    console.print(table)


@click.command("work")
@click.argument("issue_number", required=False)
@click.option("--merge", is_flag=True, help="Squash-merge the PR once all reviewers approve")
def work(issue_number: Optional[str], merge: bool) -> None:
    """Work one issue through implementation and review.

    Examples:
        automatasaurus work 42
        automatasaurus work 42 --merge
    """
    try:
        number = parse_issue_number(issue_number)
    except ValueError as e:
        fail(str(e))

    config = load_config_or_exit()
    tracker = make_tracker()
    agents = make_agents(config)

    try:
        tracker.ensure_auth()
        ReviewStateMachine(
            number,
            tracker,
            agents,
            merge=merge,
            merge_method=config.merge_method,
            open_issue_limit=config.open_issue_limit,
        ).run()
    except RuntimeError as e:
        fail(str(e))


@click.command("work-all")
@click.option("--merge", is_flag=True, help="Squash-merge each PR once all reviewers approve")
def work_all(merge: bool) -> None:
    """Work ready issues in priority order.

    Stops after AUTOMATASAURUS_MAX_ISSUES_PER_RUN issues (default 20).

    Examples:
        automatasaurus work-all
        AUTOMATASAURUS_MAX_ISSUES_PER_RUN=5 automatasaurus work-all --merge
    """
    config = load_config_or_exit()
    tracker = make_tracker()
    agents = make_agents(config)

    def make_worker(number: int, open_numbers: Set[int]) -> ReviewStateMachine:
        return ReviewStateMachine(
            number,
            tracker,
            agents,
            merge=merge,
            merge_method=config.merge_method,
            open_issue_limit=config.open_issue_limit,
            open_issue_numbers=open_numbers,
        )

    runner = BatchRunner(
        tracker,
        make_worker,
        max_issues=config.max_issues_per_run,
        open_issue_limit=config.open_issue_limit,
    )

    try:
        tracker.ensure_auth()
        report = runner.run()
    except RuntimeError as e:
        fail(str(e))

    _print_summary(report.outcomes)


@click.command("queue")
def queue() -> None:
    """Show the work queue and what blocks each issue.

    Examples:
        automatasaurus queue
    """
    config = load_config_or_exit()
    tracker = make_tracker()

    try:
        tracker.ensure_auth()
        rows = ready_queue(tracker, tracker.list_open_issues(limit=config.open_issue_limit))
    except RuntimeError as e:
        fail(str(e))

    if not rows:
        console.print("[dim]No open issues[/dim]")
        return

    table = Table(title="Work Queue")
    table.add_column("#", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Priority", style="magenta")
    table.add_column("Blocked on", style="yellow")

    for issue, blocking in rows:
        table.add_row(
            str(issue.number),
            escape(issue.title[:50]),
            _RANK_NAMES.get(priority_rank(issue), "-"),
            ", ".join(f"#{d}" for d in blocking) or "[green]ready[/green]",
        )

    console.print(table)
