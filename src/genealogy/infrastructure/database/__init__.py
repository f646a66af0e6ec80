"""Edge relation schema and engine setup via SQLAlchemy Core."""

from genealogy.infrastructure.database.engine import create_db_engine, init_database, is_sqlite
from genealogy.infrastructure.database.schema import DEFAULT_TABLE_NAME, EDGE_COLUMNS, edge_table

__all__ = [
    "DEFAULT_TABLE_NAME",
    "EDGE_COLUMNS",
    "create_db_engine",
    "edge_table",
    "init_database",
    "is_sqlite",
]
