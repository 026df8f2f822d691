"""Work queue ordering."""

from typing import Iterable, List, Tuple

from automatasaurus.github import Issue

BLOCKED_LABEL = "blocked"

# Lower rank is worked first; issues without a priority label go last
PRIORITY_RANKS = {
    "priority:high": 0,
    "priority:medium": 1,
    "priority:low": 2,
}
UNPRIORITIZED_RANK = 3


def priority_rank(issue: Issue) -> int:
    """Get the priority rank of an issue (highest priority label wins)."""
    ranks = [
        PRIORITY_RANKS[label.lower()]
        for label in issue.labels
        if label.lower() in PRIORITY_RANKS
    ]
    return min(ranks, default=UNPRIORITIZED_RANK)


def sort_key(issue: Issue) -> Tuple[int, int]:
    return (priority_rank(issue), issue.number)


def order_work_queue(issues: Iterable[Issue]) -> List[Issue]:
    """Order open issues for processing.

    Issues labelled "blocked" are dropped. The rest are sorted by priority
    (high, medium, low, unlabeled) and then by ascending issue number.

    Args:
        issues: Open issue snapshot

    Returns:
        Sorted list of issues
    """
    return sorted(
        (issue for issue in issues if not issue.has_label(BLOCKED_LABEL)),
        key=sort_key,
    )
