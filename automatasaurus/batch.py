"""Batch processing of the ready-issue queue."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Set, Tuple

from rich.console import Console
from rich.markup import escape

from automatasaurus.dependencies import find_blocking_dependencies
from automatasaurus.github import Issue, IssueTracker
from automatasaurus.scheduler import order_work_queue
from automatasaurus.state_machine import Blocked, Outcome, ReviewStateMachine

logger = logging.getLogger(__name__)
console = Console()

DEFAULT_MAX_ISSUES_PER_RUN = 20

# Builds the state machine for one issue given its number and the current open-issue snapshot
WorkerFactory = Callable[[int, Set[int]], ReviewStateMachine]


@dataclass
class BatchReport:
    """Summary of a batch run."""

    processed: int
    max_issues: int
    outcomes: List[Outcome] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    limit_reached: bool = False


class BatchRunner:
    """Works ready issues in priority order, up to a cap."""

    def __init__(
        self,
        tracker: IssueTracker,
        worker_factory: WorkerFactory,
        max_issues: int = DEFAULT_MAX_ISSUES_PER_RUN,
        open_issue_limit: int = 200,
    ):
        """Initialize the batch runner.

        Args:
            tracker: Source of open issues and live dependency lookups
            worker_factory: Creates a ReviewStateMachine for an issue
            max_issues: Cap on issues processed in this run (must be positive)
            open_issue_limit: How many open issues to fetch per snapshot
        """
        if max_issues <= 0:
            raise ValueError(f"max_issues must be positive, got {max_issues}")
        self.tracker = tracker
        self.worker_factory = worker_factory
        self.max_issues = max_issues
        self.open_issue_limit = open_issue_limit

    def run(self) -> BatchReport:
        """Process the queue.

        The open-issue snapshot is taken once and both the queue order and
        the readiness checks use it for the whole run, so an issue whose
        dependency is closed mid-run waits for the next run. Dependencies
        outside the snapshot are still looked up live. Errors from the state
        machine abort the whole run.

        Returns:
            BatchReport with per-issue outcomes
        """
        open_issues = self.tracker.list_open_issues(limit=self.open_issue_limit)
        open_numbers = {issue.number for issue in open_issues}
        queue = order_work_queue(open_issues)
        report = BatchReport(processed=0, max_issues=self.max_issues)

        logger.info(f"Work queue: {[issue.number for issue in queue]}")

        for issue in queue:
            if report.processed >= self.max_issues:
                report.limit_reached = True
                console.print(
                    f"\n[yellow]Limit reached: processed {report.processed}/{self.max_issues} issues.[/yellow]"
                )
                break

            blocking = find_blocking_dependencies(issue, open_numbers, self.tracker)
            if blocking:
                logger.info(f"Skipping #{issue.number}: blocked on {blocking}")
                report.skipped.append(issue.number)
                continue

            console.print(f"\n[bold cyan]=== Working issue #{issue.number}: {escape(issue.title)} ===[/bold cyan]")
            outcome = self.worker_factory(issue.number, set(open_numbers)).run()
            report.outcomes.append(outcome)

            if isinstance(outcome, Blocked):
                report.skipped.append(issue.number)
                continue

            report.processed += 1

        console.print(f"\n[bold]Work-all complete. Processed {report.processed} issues.[/bold]")
        return report


def ready_queue(
    tracker: IssueTracker, open_issues: Iterable[Issue]
) -> List[Tuple[Issue, List[int]]]:
    """Pair each queued issue with its blocking dependencies.

    Returns:
        List of (issue, blocking_dependency_numbers) in work-queue order
    """
    issues = list(open_issues)
    open_numbers = {issue.number for issue in issues}
    return [
        (issue, find_blocking_dependencies(issue, open_numbers, tracker))
        for issue in order_work_queue(issues)
    ]
