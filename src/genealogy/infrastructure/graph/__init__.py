"""In-memory graph snapshot built from the edge relation."""

from genealogy.infrastructure.graph.engine import GraphEngine

__all__ = ["GraphEngine"]
