"""GenealogySettings — CLI flags, env vars and ``genealogy.toml`` in one object.

Priority, highest first:

1. keyword arguments (the CLI flags Click collected)
2. ``GENEALOGY_*`` environment variables, ``__`` between nested keys
   (``GENEALOGY_STORE__URL``)
3. the TOML file, from ``--config`` or walk-up discovery
4. defaults baked into the section models

Sources are deep-merged, so ``--db-url`` replaces ``store.url`` and keeps a
``store.table`` that came from TOML.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
    TomlConfigSettingsSource,
)

from genealogy.config.discovery import find_config
from genealogy.config.models import StoreConfig, TraversalConfig

# settings_customise_sources is a classmethod, so the file chosen by
# from_cli reaches it through this variable for the duration of one build.
_toml_file: ContextVar[Path | None] = ContextVar("_toml_file", default=None)


class GenealogySettings(BaseSettings):
    """Resolved settings for one CLI invocation (or library caller).

    Attributes:
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="GENEALOGY_",
        env_nested_delimiter="__",
    )

    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    store: StoreConfig = Field(default_factory=StoreConfig)
    traversal: TraversalConfig = Field(default_factory=TraversalConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_file = _toml_file.get()
        if toml_file is None:
            return init_settings, env_settings
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> GenealogySettings:
        """Build settings for a CLI invocation.

        An explicit *config_path* wins over discovery, which walks up from
        *start* (default: cwd). Overrides that are ``None`` or ``{}`` stand
        for "flag not given" and are left out so lower sources show through.

        Raises:
            click.ClickException: The TOML file, an env var or a flag is invalid.
        """
        if config_path:
            explicit = Path(config_path)
            toml_file = explicit if explicit.is_file() else None
        else:
            toml_file = find_config(start)

        given = {key: value for key, value in overrides.items() if value not in (None, {})}

        token = _toml_file.set(toml_file)
        try:
            return cls(config_path=toml_file, **given)
        except (tomllib.TOMLDecodeError, SettingsError, ValidationError) as exc:
            where = f" in {toml_file}" if toml_file else ""
            raise click.ClickException(f"Invalid configuration{where}: {exc}") from exc
        finally:
            _toml_file.reset(token)
