"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Opens the edge store lazily so ``--help`` and
``--version`` never touch the database, and routes results to
stdout/stderr with the right exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click

from genealogy.domain.errors import GenealogyError
from genealogy.output.formatters import OutputSettings, format_result
from genealogy.services.result import ServiceResult

if TYPE_CHECKING:
    from genealogy.config.settings import GenealogySettings
    from genealogy.infrastructure.store import EdgeStore
    from genealogy.services.graph import GraphService


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: GenealogySettings) -> None:
        self.settings = settings
        self._store: EdgeStore | None = None

        from genealogy.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from genealogy.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> EdgeStore:
        """The edge store (opened on first access)."""
        if self._store is None:
            from genealogy.infrastructure.store import EdgeStore

            try:
                self._store = EdgeStore.from_config(self.settings.store)
            except GenealogyError as exc:
                self.fail("open_store", exc)
        return self._store

    def graph_service(self) -> GraphService:
        from genealogy.services.graph import GraphService

        traversal = self.settings.traversal
        return GraphService(
            self.store,
            strategy=traversal.strategy,
            timeout=traversal.timeout_seconds or None,
        )

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def _output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def fail(self, op: str, exc: GenealogyError) -> NoReturn:
        """Report an error raised outside a service call and exit 1."""
        result = ServiceResult.from_error(op, exc)
        click.echo(format_result(result, settings=self._output_settings()), err=True)
        raise SystemExit(1)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout; warnings to stderr unless in JSON mode, where
          they are already part of the payload.
        * Failure: stderr, exit code 1.
        """
        settings = self._output_settings()
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
