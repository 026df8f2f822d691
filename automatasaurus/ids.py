"""Issue number parsing.

This is the one place that turns user input into an issue number.
"""

from typing import Optional

WORK_USAGE = "Usage: automatasaurus work <issue-number> [--merge]"


def parse_issue_number(s: Optional[str]) -> int:
    """Parse an issue number from user input.

    Handles: "1", "42", "#42", " 042 ".

    Args:
        s: User-provided issue number string

    Returns:
        Positive integer issue number

    Raises:
        ValueError: If input is missing, not numeric, or not positive
    """
    text = (s or "").strip().lstrip("#")
    if not (text.isascii() and text.isdigit()) or int(text) <= 0:
        raise ValueError(WORK_USAGE)
    return int(text)
