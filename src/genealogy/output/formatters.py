"""Format a ServiceResult for display.

Three modes: JSON (``--json``, the full model), quiet (``--quiet``, node
ids one per line) and human (rich status line, fields and a node table).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from genealogy.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from genealogy.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Render *result* according to *settings*."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return _render_quiet(result)
    return _render_human(result, verbose=settings.verbose)


def _render_quiet(result: ServiceResult) -> str:
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items)
    return f"OK: {result.op}"


def _field(console: Console, key: str, value: Any) -> None:
    if isinstance(value, dict | list):
        value = json.dumps(value, separators=(",", ":"))
    style = "gen.id" if key.endswith("id") else ""
    console.print(Text(f"  {key}: ", style="gen.key"), Text(str(value), style=style), sep="")


def _render_human(result: ServiceResult, *, verbose: bool) -> str:
    console = create_console()

    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        console.print(Text("ERROR", style="gen.error"), Text(f"  {result.op}", style="gen.op"))
        console.print(f"  {msg}", markup=False)
        if result.error is not None:
            for key, value in result.error.detail.items():
                _field(console, key, value)
        return get_output(console).rstrip("\n")

    console.print(Text("OK", style="gen.ok"), Text(f"  {result.op}", style="gen.op"))
    for key, value in result.data.items():
        if key != "items":
            _field(console, key, value)

    items = result.data.get("items")
    if items:
        table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
        table.add_column("ID", style="gen.id")
        table.add_column("Type", style="gen.type")
        for item in items:
            table.add_row(str(item["id"]), str(item["type"]))
        console.print(table)

    if verbose and result.meta:
        console.print(Text("  meta:", style="dim"))
        console.print(f"    {json.dumps(result.meta, indent=2)}", markup=False)

    return get_output(console).rstrip("\n")
