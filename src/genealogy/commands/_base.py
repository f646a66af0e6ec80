"""Click base classes with ``--examples`` support, plus the NODE parameter type.

``GenCommand`` and ``GenGroup`` accept an ``examples`` string; passing
``--examples`` prints it and exits, which keeps ``--help`` short.
"""

from __future__ import annotations

from typing import Any

import click

from genealogy.domain.types import Node


class _ExamplesMixin:
    """Adds an eager ``--examples`` flag when built with ``examples=...``."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show usage examples.",
                )
            )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n\n{self.examples}")
        ctx.exit(0)


class GenCommand(_ExamplesMixin, click.Command):
    """Command with optional ``--examples``."""


class GenGroup(_ExamplesMixin, click.Group):
    """Group with optional ``--examples``; subcommands default to GenCommand."""

    command_class = GenCommand


class NodeParamType(click.ParamType):
    """Parse ``ID:TYPE`` into a :class:`Node`. Splits on the last colon."""

    name = "ID:TYPE"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Node:
        if isinstance(value, Node):
            return value
        node_id, sep, node_type = str(value).rpartition(":")
        if not sep or not node_id or not node_type:
            self.fail(f"{value!r} is not of the form ID:TYPE", param, ctx)
        return Node(id=node_id, type=node_type)


NODE = NodeParamType()
