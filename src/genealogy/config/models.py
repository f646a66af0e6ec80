"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, genealogy.toml only contains
overrides. An empty file (or none at all) gives a working SQLite store.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from genealogy.domain.types import TraversalStrategy


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    url: str = "sqlite:///genealogy.db"
    table: str = "edge"
    echo: bool = False

    @field_validator("table")
    @classmethod
    def _table_is_identifier(cls, value: str) -> str:
        if not value.replace("_", "").isalnum() or value[0].isdigit():
            msg = f"table must be a plain SQL identifier, got {value!r}"
            raise ValueError(msg)
        return value


class TraversalConfig(BaseModel):
    """[traversal] section."""

    model_config = {"frozen": True}

    strategy: TraversalStrategy = TraversalStrategy.CTE
    timeout_seconds: float = Field(default=0.0, ge=0.0)  # 0 disables


class GenealogyConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    store: StoreConfig = Field(default_factory=StoreConfig)
    traversal: TraversalConfig = Field(default_factory=TraversalConfig)
