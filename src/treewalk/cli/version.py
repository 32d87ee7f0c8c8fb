"""CLI command reporting the installed treewalk version."""

from __future__ import annotations

import click

from treewalk import __version__


@click.command()
def version() -> None:
    """Print version and exit."""
    print(__version__)
