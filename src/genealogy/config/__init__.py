"""Configuration — TOML discovery, pydantic models, settings, logging."""

from genealogy.config.discovery import find_config, load_config
from genealogy.config.models import GenealogyConfig

__all__ = ["GenealogyConfig", "find_config", "load_config"]
