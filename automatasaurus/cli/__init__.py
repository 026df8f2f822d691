"""CLI for automatasaurus."""

import click

from automatasaurus import __version__
from automatasaurus.cli._utils import configure_logging


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """automatasaurus: multi-agent issue automation

    Architect, developer, designer and tester agents work GitHub issues
    through implementation and review.
    """
    configure_logging(verbose)


# Import and register command modules
from automatasaurus.cli import planning
from automatasaurus.cli import work

# Issue workflow commands
main.add_command(work.work)
main.add_command(work.work_all)
main.add_command(work.queue)

# Product owner commands
main.add_command(planning.work_plan)
main.add_command(planning.discovery)

__all__ = ["main"]
