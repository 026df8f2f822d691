"""Issue dependency checking for automatasaurus.

An issue declares its prerequisites in its body with lines such as
"Depends on #12". An issue is ready once every prerequisite is closed.
"""

import logging
import re
from typing import Iterable, List, Optional, Set

from automatasaurus.github import Issue, IssueTracker

logger = logging.getLogger(__name__)

_DEPENDS_ON_PATTERN = re.compile(r"Depends on\s+#(\d+)", re.IGNORECASE)

UI_LABELS = frozenset({"ui", "frontend", "design"})
_UI_BODY_PATTERN = re.compile(r"\bui\b|frontend|user interface")


def parse_dependencies(body: Optional[str]) -> List[int]:
    """Extract the issue numbers an issue body depends on.

    Args:
        body: Issue body (may be None)

    Returns:
        Unique dependency numbers in order of first mention
    """
    deps: List[int] = []
    for match in _DEPENDS_ON_PATTERN.finditer(body or ""):
        number = int(match.group(1))
        if number > 0 and number not in deps:
            deps.append(number)
    return deps


def is_ui_issue(issue: Issue) -> bool:
    """Check whether an issue needs designer involvement.

    True if the issue carries a ui/frontend/design label, or its body
    mentions UI, frontend or user interface.
    """
    if any(label.lower() in UI_LABELS for label in issue.labels):
        return True
    return bool(_UI_BODY_PATTERN.search((issue.body or "").lower()))


def find_blocking_dependencies(
    issue: Issue,
    open_issue_numbers: Iterable[int],
    tracker: IssueTracker,
) -> List[int]:
    """Find the dependencies of an issue that are still open.

    The open-issue snapshot is consulted first. A dependency missing from
    the snapshot is looked up live, since the snapshot can be stale or
    truncated. Lookups are not cached between calls.

    Args:
        issue: Issue whose dependencies to check
        open_issue_numbers: Snapshot of currently open issue numbers
        tracker: Used for live lookups of dependencies not in the snapshot

    Returns:
        Still-open dependency numbers (empty if the issue is ready)

    Raises:
        ExternalCommandError: If a live lookup fails
    """
    snapshot: Set[int] = set(open_issue_numbers)
    blocking: List[int] = []

    for dep in parse_dependencies(issue.body):
        if dep in snapshot:
            blocking.append(dep)
            continue
        dep_issue = tracker.get_issue(dep)
        if dep_issue.is_open:
            blocking.append(dep)

    if blocking:
        logger.debug(f"Issue #{issue.number} blocked on {blocking}")
    return blocking
