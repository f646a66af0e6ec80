"""Command group: graph traversal."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from genealogy.commands._base import GenGroup

if TYPE_CHECKING:
    from genealogy.commands._context import AppContext

_GRAPH_EXAMPLES = """\
  genealogy graph children p1
  genealogy graph parents c1
  genealogy graph descendants p1
  genealogy graph ascendants c1 --timeout 2
  genealogy graph first-of-type p1 J
  genealogy --strategy bfs --json graph descendants p1"""

_TIMEOUT_HELP = "Cancel the traversal after this many seconds."


@click.group(cls=GenGroup, examples=_GRAPH_EXAMPLES)
def graph() -> None:
    """Traverse the edge graph."""


@graph.command(
    examples="""\
  genealogy graph children p1
  genealogy --quiet graph children p1"""
)
@click.argument("node_id")
@click.option("--timeout", type=float, default=None, help=_TIMEOUT_HELP)
@click.pass_obj
def children(app: AppContext, node_id: str, timeout: float | None) -> None:
    """List the immediate children of NODE_ID."""
    app.emit(app.graph_service().children(node_id, timeout=timeout))


@graph.command(
    examples="""\
  genealogy graph parents c1
  genealogy --json graph parents c1"""
)
@click.argument("node_id")
@click.option("--timeout", type=float, default=None, help=_TIMEOUT_HELP)
@click.pass_obj
def parents(app: AppContext, node_id: str, timeout: float | None) -> None:
    """List the immediate parents of NODE_ID."""
    app.emit(app.graph_service().parents(node_id, timeout=timeout))


@graph.command(
    examples="""\
  genealogy graph descendants p1
  genealogy --strategy memory graph descendants p1"""
)
@click.argument("node_id")
@click.option("--timeout", type=float, default=None, help=_TIMEOUT_HELP)
@click.pass_obj
def descendants(app: AppContext, node_id: str, timeout: float | None) -> None:
    """List every node reachable from NODE_ID."""
    app.emit(app.graph_service().descendants(node_id, timeout=timeout))


@graph.command(
    examples="""\
  genealogy graph ascendants c1
  genealogy --strategy bfs graph ascendants c1"""
)
@click.argument("node_id")
@click.option("--timeout", type=float, default=None, help=_TIMEOUT_HELP)
@click.pass_obj
def ascendants(app: AppContext, node_id: str, timeout: float | None) -> None:
    """List every node from which NODE_ID is reachable."""
    app.emit(app.graph_service().ascendants(node_id, timeout=timeout))


@graph.command(
    name="first-of-type",
    examples="""\
  genealogy graph first-of-type p1 J
  genealogy --json graph first-of-type p1 C""",
)
@click.argument("node_id")
@click.argument("node_type")
@click.option("--timeout", type=float, default=None, help=_TIMEOUT_HELP)
@click.pass_obj
def first_of_type(app: AppContext, node_id: str, node_type: str, timeout: float | None) -> None:
    """List the closest descendants of NODE_TYPE along each path from NODE_ID."""
    app.emit(app.graph_service().first_descendants_of_type(node_id, node_type, timeout=timeout))
