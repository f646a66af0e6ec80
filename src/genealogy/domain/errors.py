"""Error hierarchy for store and traversal failures.

Every error carries the operation name and the stage it failed in
(``connect``, ``prepare``, ``execute`` or ``scan``). The service layer maps
each class to a stable ``ServiceError.code`` via :attr:`GenealogyError.code`.
"""

from __future__ import annotations

from typing import Any


class GenealogyError(Exception):
    """Base class for all genealogy errors."""

    code = "ERROR"

    def __init__(self, message: str, *, op: str = "", stage: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.op = op
        self.stage = stage

    def detail(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.op:
            out["op"] = self.op
        if self.stage:
            out["stage"] = self.stage
        return out

    def __str__(self) -> str:
        prefix = ":".join(p for p in (self.op, self.stage) if p)
        return f"{prefix}: {self.message}" if prefix else self.message


class StoreConnectionError(GenealogyError):
    """The backing store was unreachable or a connection could not be set up."""

    code = "CONNECTION_ERROR"


class PersistenceError(GenealogyError):
    """An insert or delete could not be applied."""

    code = "PERSISTENCE_ERROR"


class DuplicateEdgeError(PersistenceError):
    """The exact edge tuple is already stored."""

    code = "DUPLICATE_EDGE"


class NodeTypeConflictError(GenealogyError):
    """One node id is stored (or requested) under more than one type."""

    code = "NODE_TYPE_CONFLICT"

    def __init__(
        self,
        node_id: str,
        types: list[str],
        *,
        op: str = "",
        stage: str = "",
    ) -> None:
        self.node_id = node_id
        self.types = sorted(types)
        super().__init__(
            f"Node '{node_id}' has conflicting types: {', '.join(self.types)}",
            op=op,
            stage=stage,
        )

    def detail(self) -> dict[str, Any]:
        return {**super().detail(), "node_id": self.node_id, "types": self.types}


class QueryError(GenealogyError):
    """A statement failed to compile or execute. Indicates a defect."""

    code = "QUERY_ERROR"


class TraversalTimeoutError(QueryError):
    """A traversal exceeded its deadline and was cancelled."""

    code = "TIMEOUT"


class ScanError(GenealogyError):
    """A result row could not be decoded into a node."""

    code = "SCAN_ERROR"
