"""Agent prompts.

Each prompt is a Jinja template rendered with the issue / PR numbers of the
current step. The review prompts spell out the exact marker lines that
markers.py looks for.
"""

from jinja2 import Template

from automatasaurus import markers
from automatasaurus.agents import PR_NUMBER_TOKEN

_REFERENCE_FILES = """Reference files:
- @.github/copilot-instructions.md
- @.github/automatasaurus-commands.md"""

DESIGN_SPEC = Template(
    """You are the Designer.

Add UI/UX specs as a comment on GitHub issue #{{ issue_number }}.

""" + _REFERENCE_FILES + """

Requirements:
- Comment starts with **[Designer]**
- If truly no UI impact, comment N/A

Now do the work."""
)

IMPLEMENT = Template(
    """You are the Developer.

Implement GitHub issue #{{ issue_number }}.

""" + _REFERENCE_FILES + """

Requirements:
- Create a branch named {{ issue_number }}-<slug>
- Open a PR that includes "Closes #{{ issue_number }}" in the body
- At the end print: {{ token }}=<number>

Now do the work."""
)

ARCHITECT_REVIEW = Template(
    """You are the Architect.

Review PR #{{ pr_number }} in this repo.

Requirements:
- Leave a PR comment starting with **[Architect]**
- Include exactly one marker on its own line:
  - {{ approved }}
  - {{ changes }}

Now do the review."""
)

DESIGNER_REVIEW = Template(
    """You are the Designer.

Review PR #{{ pr_number }} for UI/UX and accessibility.

Requirements:
- Leave a PR comment starting with **[Designer]**
- If no UI changes, comment N/A
- Otherwise include exactly one marker on its own line:
  - {{ approved }}
  - {{ changes }}

Now do the review."""
)

TESTER_REVIEW = Template(
    """You are the Tester.

Verify PR #{{ pr_number }}.

Requirements:
- Run the relevant tests using .github/automatasaurus-commands.md
- Leave a PR comment starting with **[Tester]**
- Include exactly one marker on its own line:
  - {{ approved }}
  - {{ changes }}

Now do the verification."""
)

ADDRESS_FEEDBACK = Template(
    """You are the Developer.

Address review feedback on PR #{{ pr_number }}.

Steps:
- Read PR comments
- Make requested changes
- Push updates
- Comment with what changed using **[Developer]**

At the end print: {{ token }}={{ pr_number }}
"""
)

WORK_PLAN = Template(
    """You are the Product Owner agent (automatasaurus).

Create or update an implementation plan for the open issues in this repository.

""" + _REFERENCE_FILES + """
- @.automatasaurus/commands/work-plan.md
"""
)

DISCOVERY = Template(
    """You are the Product Owner agent (automatasaurus).

Follow the discovery workflow and create a discovery plan.

""" + _REFERENCE_FILES + """
- @.automatasaurus/commands/discovery.md

User request: {{ request }}
"""
)


def design_spec_prompt(issue_number: int) -> str:
    return DESIGN_SPEC.render(issue_number=issue_number)


def implement_prompt(issue_number: int) -> str:
    return IMPLEMENT.render(issue_number=issue_number, token=PR_NUMBER_TOKEN)


def architect_review_prompt(pr_number: int) -> str:
    return ARCHITECT_REVIEW.render(
        pr_number=pr_number,
        approved=markers.ARCHITECT_APPROVED,
        changes=markers.ARCHITECT_CHANGES,
    )


def designer_review_prompt(pr_number: int) -> str:
    return DESIGNER_REVIEW.render(
        pr_number=pr_number,
        approved=markers.DESIGNER_APPROVED,
        changes=markers.DESIGNER_CHANGES,
    )


def tester_review_prompt(pr_number: int) -> str:
    return TESTER_REVIEW.render(
        pr_number=pr_number,
        approved=markers.TESTER_APPROVED,
        changes=markers.TESTER_CHANGES,
    )


def address_feedback_prompt(pr_number: int) -> str:
    return ADDRESS_FEEDBACK.render(pr_number=pr_number, token=PR_NUMBER_TOKEN)


def work_plan_prompt() -> str:
    return WORK_PLAN.render()


def discovery_prompt(request: str) -> str:
    return DISCOVERY.render(request=request)
