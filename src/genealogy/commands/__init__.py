"""Subcommand modules for the genealogy CLI.

register_commands() defers imports so ``genealogy --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups and standalone commands on the root group."""
    from genealogy.commands.edge import edge
    from genealogy.commands.graph import graph
    from genealogy.commands.seed import seed

    cli.add_command(graph)
    cli.add_command(edge)
    cli.add_command(seed)
