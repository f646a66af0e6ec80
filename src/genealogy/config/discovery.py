"""Where ``genealogy.toml`` comes from.

A ``GENEALOGY_CONFIG`` path pins the file. Otherwise the nearest
``genealogy.toml`` in the start directory or any of its ancestors is used.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path

from genealogy.config.models import GenealogyConfig

CONFIG_FILENAME = "genealogy.toml"
CONFIG_ENV_VAR = "GENEALOGY_CONFIG"


def candidate_paths(start: Path | None = None) -> Iterator[Path]:
    """Config paths to try for a run started in *start* (default: cwd), nearest first.

    A pinned ``GENEALOGY_CONFIG`` is the only candidate, so a pin to a
    missing file means no config at all.
    """
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        yield Path(pinned)
        return

    here = (start or Path.cwd()).resolve()
    yield from (directory / CONFIG_FILENAME for directory in (here, *here.parents))


def find_config(start: Path | None = None) -> Path | None:
    """The first existing file among :func:`candidate_paths`, or None."""
    return next((path for path in candidate_paths(start) if path.is_file()), None)


def load_config(path: Path | None = None, *, start: Path | None = None) -> GenealogyConfig:
    """Validated config from *path*, or from the file discovered above *start*.

    With no file anywhere the section defaults apply.
    """
    source = path if path is not None else find_config(start)
    if source is None:
        return GenealogyConfig()
    with source.open("rb") as fh:
        return GenealogyConfig.model_validate(tomllib.load(fh))
