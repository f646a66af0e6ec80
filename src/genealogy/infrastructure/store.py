"""EdgeStore — the persisted edge relation behind every graph operation.

The store owns the engine, the edge table definition and the in-memory
graph snapshot. It exposes point lookups, one-level frontier expansion,
store-native recursive closures, and single-edge insert/delete.

Every call checks out one connection inside a transaction and returns it
to the pool on all exit paths. SQLAlchemy exceptions never leak: they are
translated into :mod:`genealogy.domain.errors` with the operation name
and the failing stage (``connect``, ``prepare``, ``execute``, ``scan``).

Deadlines are absolute ``time.monotonic()`` values. SQLite enforces them
mid-statement through a progress handler; PostgreSQL through
``SET LOCAL statement_timeout``. Other backends only check between
statements.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, func, insert, or_, select, text, union
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError

from genealogy.domain.errors import (
    DuplicateEdgeError,
    GenealogyError,
    NodeTypeConflictError,
    PersistenceError,
    QueryError,
    ScanError,
    StoreConnectionError,
    TraversalTimeoutError,
)
from genealogy.domain.types import Direction, Edge, Node
from genealogy.infrastructure.database.engine import create_db_engine, init_database, is_sqlite
from genealogy.infrastructure.database.schema import DEFAULT_TABLE_NAME, edge_table
from genealogy.infrastructure.graph.engine import GraphEngine

if TYPE_CHECKING:
    from sqlalchemy import Connection, CursorResult, Executable, Table
    from sqlalchemy.engine import Engine

    from genealogy.config.models import StoreConfig

logger = logging.getLogger(__name__)

# Frontier nodes per OR-chain in one level query; keeps bound parameters
# under SQLite's default limit.
_LEVEL_CHUNK = 200

# SQLite VM instructions between deadline checks.
_PROGRESS_STEPS = 1000


def _reason(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _expired(deadline: float | None) -> bool:
    return deadline is not None and time.monotonic() >= deadline


def _decode_node(row: Sequence[Any], op: str) -> Node:
    if len(row) != 2 or not all(isinstance(v, str) for v in row):
        raise ScanError(f"Cannot decode row {tuple(row)!r} into a node", op=op, stage="scan")
    return Node(id=row[0], type=row[1])


def _decode_edge(row: Sequence[Any], op: str) -> Edge:
    if len(row) != 4 or not all(isinstance(v, str) for v in row):
        raise ScanError(f"Cannot decode row {tuple(row)!r} into an edge", op=op, stage="scan")
    return Edge(source=Node(id=row[0], type=row[1]), target=Node(id=row[2], type=row[3]))


class EdgeStore:
    """Durable, queryable relation of directed ``(source, target)`` edges.

    Construct with an engine and a table name; the table and its indexes
    are created on construction unless ``create=False``. Use as a context
    manager (or call :meth:`close`) to release the engine's pool.
    """

    def __init__(
        self,
        engine: Engine,
        table_name: str = DEFAULT_TABLE_NAME,
        *,
        create: bool = True,
    ) -> None:
        self._engine = engine
        self._table = edge_table(table_name)
        self._graph = GraphEngine(self)
        if create:
            try:
                init_database(engine, self._table)
            except DBAPIError as exc:
                raise StoreConnectionError(_reason(exc), op="init", stage="connect") from exc

    @classmethod
    def from_config(cls, config: StoreConfig) -> EdgeStore:
        """Create the engine described by *config* and wrap it."""
        engine = create_db_engine(config.url, echo=config.echo)
        try:
            return cls(engine, config.table)
        except GenealogyError:
            engine.dispose()
            raise

    def __enter__(self) -> EdgeStore:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def close(self) -> None:
        self._engine.dispose()

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine."""
        return self._engine

    @property
    def table(self) -> Table:
        """The edge table definition."""
        return self._table

    @property
    def graph(self) -> GraphEngine:
        """In-memory snapshot of the relation (lazy-built, invalidated on writes)."""
        return self._graph

    # ------------------------------------------------------------------
    # Connection handling and error translation
    # ------------------------------------------------------------------

    @contextmanager
    def _connection(self, op: str, *, deadline: float | None = None) -> Iterator[Connection]:
        """Check out a connection with an open transaction for one operation."""
        if _expired(deadline):
            raise TraversalTimeoutError("Deadline exceeded", op=op, stage="connect")
        try:
            conn = self._engine.connect()
        except DBAPIError as exc:
            raise StoreConnectionError(_reason(exc), op=op, stage="connect") from exc

        try:
            with conn.begin():
                self._arm_deadline(conn, deadline)
                try:
                    yield conn
                finally:
                    self._disarm_deadline(conn, deadline)
        except DBAPIError as exc:
            # Commit/rollback failures; statement failures are already translated.
            raise self._translate(
                exc, op=op, stage="commit", write=True, deadline=deadline
            ) from exc
        finally:
            conn.close()

    def _arm_deadline(self, conn: Connection, deadline: float | None) -> None:
        if deadline is None:
            return
        if is_sqlite(self._engine):
            driver = conn.connection.driver_connection
            driver.set_progress_handler(  # type: ignore[union-attr]
                lambda: 1 if time.monotonic() >= deadline else 0,
                _PROGRESS_STEPS,
            )
        elif self._engine.dialect.name == "postgresql":
            remaining_ms = max(1, int((deadline - time.monotonic()) * 1000))
            conn.execute(text(f"SET LOCAL statement_timeout = {remaining_ms}"))

    def _disarm_deadline(self, conn: Connection, deadline: float | None) -> None:
        if deadline is None or not is_sqlite(self._engine):
            return
        driver = conn.connection.driver_connection
        driver.set_progress_handler(None, _PROGRESS_STEPS)  # type: ignore[union-attr]

    @staticmethod
    def _translate(
        exc: SQLAlchemyError,
        *,
        op: str,
        stage: str,
        write: bool,
        deadline: float | None,
    ) -> GenealogyError:
        reason = _reason(exc)
        if _expired(deadline):
            return TraversalTimeoutError(f"Deadline exceeded ({reason})", op=op, stage=stage)
        if isinstance(exc, IntegrityError):
            if "unique" in reason.lower():
                return DuplicateEdgeError(f"Edge already exists ({reason})", op=op, stage=stage)
            return PersistenceError(reason, op=op, stage=stage)
        if isinstance(exc, DBAPIError):
            if exc.connection_invalidated:
                return StoreConnectionError(reason, op=op, stage=stage)
            if write:
                return PersistenceError(reason, op=op, stage=stage)
            return QueryError(reason, op=op, stage=stage)
        # Compilation / parameter binding, before the statement reached the driver
        return QueryError(reason, op=op, stage="prepare")

    def _execute(
        self,
        conn: Connection,
        stmt: Executable,
        *,
        op: str,
        write: bool = False,
        deadline: float | None = None,
    ) -> CursorResult[Any]:
        try:
            return conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise self._translate(
                exc, op=op, stage="execute", write=write, deadline=deadline
            ) from exc

    def _rows(
        self,
        conn: Connection,
        stmt: Executable,
        *,
        op: str,
        deadline: float | None,
    ) -> list[Any]:
        """Execute a read and fetch every row."""
        result = self._execute(conn, stmt, op=op, deadline=deadline)
        try:
            return list(result.all())
        except SQLAlchemyError as exc:
            raise self._translate(exc, op=op, stage="scan", write=False, deadline=deadline) from exc

    def _query_nodes(self, stmt: Executable, *, op: str, deadline: float | None) -> list[Node]:
        with self._connection(op, deadline=deadline) as conn:
            rows = self._rows(conn, stmt, op=op, deadline=deadline)
        return [_decode_node(row, op) for row in rows]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert_edge(self, source: Node, target: Node, *, deadline: float | None = None) -> None:
        """Insert one edge.

        Raises :class:`NodeTypeConflictError` if either endpoint id is
        already stored under another type, and :class:`DuplicateEdgeError`
        if the exact tuple exists. Nothing is written on failure.

        The type check and the insert share one transaction but take no
        lock, so two concurrent inserts of the same id under different
        types can both pass it. Traversals still reject such an id when
        they resolve it as a seed.
        """
        op = "insert_edge"
        if source.id == target.id and source.type != target.type:
            raise NodeTypeConflictError(
                source.id, [source.type, target.type], op=op, stage="prepare"
            )

        e = self._table
        with self._connection(op, deadline=deadline) as conn:
            for node in (source, target):
                stored = self._node_types(conn, node.id, op=op, deadline=deadline)
                conflicting = [t for t in stored if t != node.type]
                if conflicting:
                    raise NodeTypeConflictError(
                        node.id, [node.type, *conflicting], op=op, stage="prepare"
                    )
            self._execute(
                conn,
                insert(e).values(
                    source_node_id=source.id,
                    source_node_type=source.type,
                    target_node_id=target.id,
                    target_node_type=target.type,
                ),
                op=op,
                write=True,
                deadline=deadline,
            )
        self._graph.invalidate()
        logger.debug("Inserted edge %s -> %s", source, target)

    def delete_edge(self, source: Node, target: Node, *, deadline: float | None = None) -> int:
        """Delete the edge matching all four fields. Returns rows affected (0 is fine)."""
        op = "delete_edge"
        e = self._table
        with self._connection(op, deadline=deadline) as conn:
            result = self._execute(
                conn,
                delete(e).where(
                    e.c.source_node_id == source.id,
                    e.c.source_node_type == source.type,
                    e.c.target_node_id == target.id,
                    e.c.target_node_type == target.type,
                ),
                op=op,
                write=True,
                deadline=deadline,
            )
            removed = result.rowcount
        if removed:
            self._graph.invalidate()
        logger.debug("Deleted %d edge(s) %s -> %s", removed, source, target)
        return removed

    # ------------------------------------------------------------------
    # Point lookups
    # ------------------------------------------------------------------

    def query_by_source(self, source_id: str, *, deadline: float | None = None) -> list[Node]:
        """Targets of every edge leaving *source_id*."""
        e = self._table
        stmt = select(e.c.target_node_id, e.c.target_node_type).where(
            e.c.source_node_id == source_id
        )
        return self._query_nodes(stmt, op="query_by_source", deadline=deadline)

    def query_by_target(self, target_id: str, *, deadline: float | None = None) -> list[Node]:
        """Sources of every edge entering *target_id*."""
        e = self._table
        stmt = select(e.c.source_node_id, e.c.source_node_type).where(
            e.c.target_node_id == target_id
        )
        return self._query_nodes(stmt, op="query_by_target", deadline=deadline)

    def node_types(self, node_id: str, *, deadline: float | None = None) -> list[str]:
        """Distinct types stored for *node_id* at either end of any edge."""
        op = "node_types"
        with self._connection(op, deadline=deadline) as conn:
            return self._node_types(conn, node_id, op=op, deadline=deadline)

    def _node_types(
        self,
        conn: Connection,
        node_id: str,
        *,
        op: str,
        deadline: float | None,
    ) -> list[str]:
        e = self._table
        stmt = union(
            select(e.c.source_node_type.label("node_type")).where(e.c.source_node_id == node_id),
            select(e.c.target_node_type.label("node_type")).where(e.c.target_node_id == node_id),
        )
        rows = self._rows(conn, stmt, op=op, deadline=deadline)
        types: list[str] = []
        for row in rows:
            if not isinstance(row[0], str):
                raise ScanError(f"Cannot decode node type {row[0]!r}", op=op, stage="scan")
            types.append(row[0])
        return sorted(types)

    # ------------------------------------------------------------------
    # Frontier expansion and closures
    # ------------------------------------------------------------------

    def query_level(
        self,
        frontier: Iterable[Node],
        direction: Direction,
        *,
        deadline: float | None = None,
    ) -> list[Edge]:
        """Every edge leaving (forward) or entering (backward) a frontier node.

        One adjacency level for the whole frontier, in a single connection.
        Endpoints are matched on both id and type.
        """
        op = "query_level"
        e = self._table
        if direction is Direction.FORWARD:
            id_col, type_col = e.c.source_node_id, e.c.source_node_type
        else:
            id_col, type_col = e.c.target_node_id, e.c.target_node_type

        nodes = list(frontier)
        out: list[Edge] = []
        with self._connection(op, deadline=deadline) as conn:
            for start in range(0, len(nodes), _LEVEL_CHUNK):
                chunk = nodes[start : start + _LEVEL_CHUNK]
                stmt = select(
                    e.c.source_node_id,
                    e.c.source_node_type,
                    e.c.target_node_id,
                    e.c.target_node_type,
                ).where(or_(*[and_(id_col == n.id, type_col == n.type) for n in chunk]))
                rows = self._rows(conn, stmt, op=op, deadline=deadline)
                out.extend(_decode_edge(row, op) for row in rows)
        return out

    def query_recursive(
        self,
        seed: Node,
        direction: Direction,
        *,
        stop_type: str | None = None,
        deadline: float | None = None,
    ) -> list[Node]:
        """Transitive closure from *seed* computed by the store.

        Uses ``WITH RECURSIVE`` joined through ``UNION`` rather than
        ``UNION ALL``: a row already in the working set is never added
        again, so each ``(id, type)`` is expanded once and cycles terminate.

        With *stop_type*, nodes of that type are emitted but not expanded,
        and only nodes of that type are returned.
        """
        e = self._table
        if direction is Direction.FORWARD:
            near_id, near_type = e.c.source_node_id, e.c.source_node_type
            far_id, far_type = e.c.target_node_id, e.c.target_node_type
        else:
            near_id, near_type = e.c.target_node_id, e.c.target_node_type
            far_id, far_type = e.c.source_node_id, e.c.source_node_type

        closure = (
            select(far_id.label("node_id"), far_type.label("node_type"))
            .where(near_id == seed.id, near_type == seed.type)
            .cte("closure", recursive=True)
        )
        step = select(far_id, far_type).select_from(
            e.join(closure, and_(near_id == closure.c.node_id, near_type == closure.c.node_type))
        )
        if stop_type is not None:
            step = step.where(closure.c.node_type != stop_type)
        closure = closure.union(step)

        stmt = select(closure.c.node_id, closure.c.node_type)
        if stop_type is not None:
            stmt = stmt.where(closure.c.node_type == stop_type)
        return self._query_nodes(stmt, op=f"query_recursive_{direction}", deadline=deadline)

    # ------------------------------------------------------------------
    # Whole-relation access
    # ------------------------------------------------------------------

    def all_edges(self, *, deadline: float | None = None) -> list[Edge]:
        """Every stored edge."""
        op = "all_edges"
        e = self._table
        stmt = select(
            e.c.source_node_id,
            e.c.source_node_type,
            e.c.target_node_id,
            e.c.target_node_type,
        )
        with self._connection(op, deadline=deadline) as conn:
            rows = self._rows(conn, stmt, op=op, deadline=deadline)
        return [_decode_edge(row, op) for row in rows]

    def count(self, *, deadline: float | None = None) -> int:
        """Number of stored edges."""
        op = "count"
        with self._connection(op, deadline=deadline) as conn:
            stmt = select(func.count()).select_from(self._table)
            rows = self._rows(conn, stmt, op=op, deadline=deadline)
        return int(rows[0][0])
