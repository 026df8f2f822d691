"""Product owner commands (work-plan, discovery)."""

from typing import Tuple

import click

from automatasaurus import prompts
from automatasaurus.agents import AgentRole
from automatasaurus.cli._utils import fail, load_config_or_exit, make_agents

DISCOVERY_USAGE = 'Usage: automatasaurus discovery "<feature description>"'


@click.command("work-plan")
def work_plan() -> None:
    """Have the product owner plan the open issues."""
    agents = make_agents(load_config_or_exit())
    try:
        agents.run(prompts.work_plan_prompt(), AgentRole.PRODUCT_OWNER)
    except RuntimeError as e:
        fail(str(e))


@click.command("discovery")
@click.argument("request", nargs=-1)
def discovery(request: Tuple[str, ...]) -> None:
    """Run the discovery workflow for a feature request.

    Examples:
        automatasaurus discovery "Add dark mode to the settings page"
    """
    text = " ".join(request).strip()
    if not text:
        fail(DISCOVERY_USAGE)

    agents = make_agents(load_config_or_exit())
    try:
        agents.run(prompts.discovery_prompt(text), AgentRole.PRODUCT_OWNER)
    except RuntimeError as e:
        fail(str(e))
