"""Review marker parsing.

Reviewing agents signal their verdict by writing one fixed marker line into
their PR comment, e.g. "✅ APPROVED - Architect". Markers are matched exactly
(substring, case-sensitive): an agent whose wording drifts is not recognized.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from automatasaurus.github import PRComment

ARCHITECT_APPROVED = "✅ APPROVED - Architect"
ARCHITECT_CHANGES = "❌ CHANGES REQUESTED - Architect"
DESIGNER_APPROVED = "✅ APPROVED - Designer"
DESIGNER_CHANGES = "❌ CHANGES REQUESTED - Designer"
TESTER_APPROVED = "✅ APPROVED - Tester"
TESTER_CHANGES = "❌ CHANGES REQUESTED - Tester"


class Verdict(str, Enum):
    """Combined outcome of one review cycle."""

    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class MarkerSet:
    """Which markers were found.

    Approval and a change request for the same role can both be set when a
    thread carries conflicting comments.
    """

    architect_approved: bool = False
    architect_changes: bool = False
    designer_approved: bool = False
    designer_changes: bool = False
    tester_approved: bool = False
    tester_changes: bool = False

    def required_approved(self, needs_ui: bool) -> bool:
        return (
            self.architect_approved
            and self.tester_approved
            and (not needs_ui or self.designer_approved)
        )

    def any_changes_requested(self, needs_ui: bool) -> bool:
        return (
            self.architect_changes
            or self.tester_changes
            or (needs_ui and self.designer_changes)
        )

    def verdict(self, needs_ui: bool) -> Verdict:
        """Reduce the markers to a single verdict; change requests win."""
        if self.any_changes_requested(needs_ui):
            return Verdict.CHANGES_REQUESTED
        if self.required_approved(needs_ui):
            return Verdict.APPROVED
        return Verdict.INCONCLUSIVE


class MarkerParser(ABC):
    """Turns free text into a MarkerSet."""

    @abstractmethod
    def parse(self, text: str) -> MarkerSet:
        """Parse markers out of text."""

    def parse_comments(self, comments: Iterable[PRComment]) -> MarkerSet:
        """Parse markers from the concatenation of all comment bodies."""
        return self.parse("\n".join(comment.body or "" for comment in comments))


class ExactMarkerParser(MarkerParser):
    """Exact substring matching of the six marker strings."""

    def parse(self, text: str) -> MarkerSet:
        text = text or ""
        return MarkerSet(
            architect_approved=ARCHITECT_APPROVED in text,
            architect_changes=ARCHITECT_CHANGES in text,
            designer_approved=DESIGNER_APPROVED in text,
            designer_changes=DESIGNER_CHANGES in text,
            tester_approved=TESTER_APPROVED in text,
            tester_changes=TESTER_CHANGES in text,
        )


def get_markers_from_comments(
    comments: Iterable[PRComment], parser: Optional[MarkerParser] = None
) -> MarkerSet:
    """Parse review markers from a PR's comment thread."""
    return (parser or ExactMarkerParser()).parse_comments(comments)
