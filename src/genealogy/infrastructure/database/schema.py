"""SQLAlchemy Core definition of the edge relation.

The edge table is the only persisted state. Its name is configuration, so
the table is built by a factory instead of at import time. Each call gets
its own :class:`MetaData` unless one is passed in.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, MetaData, Table, Text, UniqueConstraint

DEFAULT_TABLE_NAME = "edge"

EDGE_COLUMNS = (
    "source_node_id",
    "source_node_type",
    "target_node_id",
    "target_node_type",
)


def edge_table(name: str = DEFAULT_TABLE_NAME, metadata: MetaData | None = None) -> Table:
    """Build the edge table definition for *name*.

    Set semantics: the four columns together are unique, so an identical
    tuple can only be stored once.
    """
    md = metadata if metadata is not None else MetaData()
    table = Table(
        name,
        md,
        Column("source_node_id", Text, nullable=False),
        Column("source_node_type", Text, nullable=False),
        Column("target_node_id", Text, nullable=False),
        Column("target_node_type", Text, nullable=False),
        UniqueConstraint(*EDGE_COLUMNS, name=f"uq_{name}_edge"),
    )

    # Point lookups in both directions drive every traversal
    Index(f"ix_{name}_source", table.c.source_node_id, table.c.source_node_type)
    Index(f"ix_{name}_target", table.c.target_node_id, table.c.target_node_type)
    return table
