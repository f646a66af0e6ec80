"""Example edge set used by ``genealogy seed`` and the tests.

Shape (types in brackets)::

    p1[P] -> s1..s10[S] -> j1[J] -> c1[C]
    p1[P] -> s11[S]     -> j2[J] -> c1[C]
    p1[P] -> s12[S]     -> j3[J] -> c2[C]
    p2[P] -> s13[S]     -> j3[J] -> c2[C]

Ten siblings converge on ``j1`` and two ``J`` nodes converge on ``c1``,
so closures that don't dedupe before expanding repeat work quickly.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from genealogy.domain.types import Edge, Node


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ExampleTree:
    """The generated edges plus the named anchor nodes."""

    p1: Node
    p2: Node
    c1: Node
    c2: Node
    edges: list[Edge] = field(default_factory=list)


def example_tree(*, siblings: int = 10) -> ExampleTree:
    """Build the example tree with fresh UUIDs.

    Args:
        siblings: Number of ``S`` nodes between ``p1`` and ``j1``.
    """
    p1, p2 = Node(_new_id(), "P"), Node(_new_id(), "P")
    c1, c2 = Node(_new_id(), "C"), Node(_new_id(), "C")
    j1, j2, j3 = (Node(_new_id(), "J") for _ in range(3))

    edges: list[Edge] = [Edge(j1, c1)]
    for _ in range(siblings):
        s = Node(_new_id(), "S")
        edges.append(Edge(s, j1))
        edges.append(Edge(p1, s))

    s11, s12, s13 = (Node(_new_id(), "S") for _ in range(3))
    edges += [Edge(j2, c1), Edge(s11, j2), Edge(p1, s11)]
    edges += [Edge(j3, c2), Edge(s12, j3), Edge(p1, s12)]
    edges += [Edge(s13, j3), Edge(p2, s13)]

    return ExampleTree(p1=p1, p2=p2, c1=c1, c2=c2, edges=edges)
