#!/usr/bin/env python3
"""
Avabox CLI
A Python CLI tool for running Avalanche test networks in Docker containers.
"""

import click

from avabox import __version__
from avabox.commands import health, nuke, run


@click.group()
@click.version_option(version=__version__)
def cli():
    """Avabox CLI - Run Avalanche test networks in Docker containers."""
    pass


cli.add_command(health)
cli.add_command(nuke)
cli.add_command(run)


def main():
    """Main entry point for the avabox CLI."""
    cli()


if __name__ == "__main__":
    main()
