"""Standalone command: load the example tree."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from genealogy.commands._base import GenCommand
from genealogy.services.examples import example_tree

if TYPE_CHECKING:
    from genealogy.commands._context import AppContext


@click.command(
    cls=GenCommand,
    examples="""\
  genealogy seed
  genealogy --json seed --siblings 3""",
)
@click.option("--siblings", default=10, type=click.IntRange(min=1), help="S nodes under j1.")
@click.pass_obj
def seed(app: AppContext, siblings: int) -> None:
    """Load the example tree (fresh UUIDs) and print its anchor nodes."""
    tree = example_tree(siblings=siblings)
    result = app.graph_service().load_edges(tree.edges)
    if result.ok:
        anchors = {name: getattr(tree, name).to_dict() for name in ("p1", "p2", "c1", "c2")}
        result = result.model_copy(update={"data": {**result.data, "anchors": anchors}})
    app.emit(result)
