"""Root CLI group for genealogy with global flags and command registration."""

from __future__ import annotations

import click

from genealogy import __version__
from genealogy.commands import register_commands
from genealogy.commands._context import AppContext
from genealogy.config.settings import GenealogySettings
from genealogy.domain.types import TraversalStrategy


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="genealogy")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Node ids only.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing spans.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--db-url", default=None, help="SQLAlchemy URL of the edge store.")
@click.option("--table", default=None, help="Edge table name.")
@click.option(
    "--strategy",
    type=click.Choice([s.value for s in TraversalStrategy]),
    default=None,
    help="How closures are computed.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    db_url: str | None,
    table: str | None,
    strategy: str | None,
) -> None:
    """genealogy — typed directed graph over a flat edge table."""
    store = {k: v for k, v in {"url": db_url, "table": table}.items() if v is not None}
    traversal = {"strategy": strategy} if strategy else {}
    settings = GenealogySettings.from_cli(
        config_path=config_path,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        store=store,
        traversal=traversal,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
