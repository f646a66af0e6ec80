"""Command group: single-edge mutation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from genealogy.commands._base import NODE, GenGroup

if TYPE_CHECKING:
    from genealogy.commands._context import AppContext
    from genealogy.domain.types import Node

_EDGE_EXAMPLES = """\
  genealogy edge add p1:P s1:S
  genealogy edge remove p1:P s1:S"""


@click.group(cls=GenGroup, examples=_EDGE_EXAMPLES)
def edge() -> None:
    """Add or remove directed edges."""


@edge.command(
    examples="""\
  genealogy edge add p1:P s1:S
  genealogy --json edge add s1:S j1:J"""
)
@click.argument("source", type=NODE)
@click.argument("target", type=NODE)
@click.pass_obj
def add(app: AppContext, source: Node, target: Node) -> None:
    """Add the edge SOURCE -> TARGET (each given as ID:TYPE)."""
    app.emit(app.graph_service().add_edge(source, target))


@edge.command(
    examples="""\
  genealogy edge remove p1:P s1:S"""
)
@click.argument("source", type=NODE)
@click.argument("target", type=NODE)
@click.pass_obj
def remove(app: AppContext, source: Node, target: Node) -> None:
    """Remove the edge SOURCE -> TARGET. Removing a missing edge is not an error."""
    app.emit(app.graph_service().remove_edge(source, target))
