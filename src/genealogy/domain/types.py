"""Graph value types and traversal enums.

Nodes have no record of their own: a node is the ``(id, type)`` pair found
at either end of a stored edge. Both fields take part in equality, so the
same id under two types is two distinct nodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


@dataclass(frozen=True, order=True)
class Node:
    """A vertex, identified by its id and type together."""

    id: str
    type: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "type": self.type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        return cls(id=str(data["id"]), type=str(data["type"]))


@dataclass(frozen=True)
class Edge:
    """A directed edge from *source* to *target*. The only persisted fact."""

    source: Node
    target: Node


class Direction(StrEnum):
    """Which way a closure follows edges."""

    FORWARD = "forward"  # source -> target (descendants)
    BACKWARD = "backward"  # target -> source (ascendants)


class TraversalStrategy(StrEnum):
    """How transitive closures are computed."""

    CTE = "cte"  # recursive query inside the store
    BFS = "bfs"  # one adjacency level per round trip, visited set in process
    MEMORY = "memory"  # NetworkX snapshot of the whole edge relation

