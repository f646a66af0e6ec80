"""GraphEngine — lazy-built NetworkX snapshot of the edge relation.

The snapshot is a derived cache, never a second source of truth: nodes are
the ``(id, type)`` values found on stored edges, and the whole graph can be
rebuilt from :meth:`EdgeStore.all_edges` at any time. The owning store
invalidates it after every successful write in this process; writes made
elsewhere are only seen after the next rebuild.

Each invalidation bumps a generation counter. A build is cached only if no
invalidation happened while it was reading, so a write that commits during
a rebuild is never hidden from later calls.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

from genealogy.domain.errors import TraversalTimeoutError
from genealogy.domain.types import Direction, Node

if TYPE_CHECKING:
    from genealogy.infrastructure.store import EdgeStore

_Graph: TypeAlias = nx.DiGraph

# Edges visited between deadline checks during an in-memory closure.
_DEADLINE_STRIDE = 256


class GraphEngine:
    """Lazy-loading closure engine backed by the edge store."""

    def __init__(self, store: EdgeStore) -> None:
        self._store = store
        self._graph: _Graph | None = None
        self._generation = 0
        self._lock = threading.Lock()

    def graph(self, *, deadline: float | None = None) -> _Graph:
        """Return the snapshot, building it from the store when none is cached.

        A graph built while a write was invalidating the cache is returned
        to this caller but not kept.
        """
        with self._lock:
            cached, generation = self._graph, self._generation
        if cached is not None:
            return cached

        built = self._build(deadline=deadline)
        with self._lock:
            if self._generation == generation:
                self._graph = built
        return built

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        with self._lock:
            self._generation += 1
            self._graph = None

    def _build(self, *, deadline: float | None) -> _Graph:
        g: _Graph = nx.DiGraph()
        for edge in self._store.all_edges(deadline=deadline):
            g.add_edge(edge.source, edge.target)
        return g

    # ------------------------------------------------------------------
    # Closures
    # ------------------------------------------------------------------

    def closure(
        self,
        seed: Node,
        direction: Direction,
        *,
        stop_type: str | None = None,
        deadline: float | None = None,
    ) -> list[Node]:
        """Nodes reachable from *seed*, in breadth-first discovery order.

        The seed is included only when a cycle leads back to it. With
        *stop_type*, edges leaving a node of that type are not followed
        (the seed's own edges always are) and only matching nodes are
        returned.

        *deadline* bounds the snapshot build and is checked every
        ``_DEADLINE_STRIDE`` edges of the walk itself.

        Raises:
            TraversalTimeoutError: The deadline passed during the walk.
        """
        g = self.graph(deadline=deadline)
        if seed not in g:
            return []

        view: _Graph = g if direction is Direction.FORWARD else g.reverse(copy=False)
        if stop_type is not None:
            view = nx.subgraph_view(
                view,
                filter_edge=lambda u, _v: u == seed or u.type != stop_type,
            )

        reached: list[Node] = []
        for step, (_u, v) in enumerate(nx.bfs_edges(view, seed)):
            if deadline is not None and step % _DEADLINE_STRIDE == 0:
                if time.monotonic() >= deadline:
                    raise TraversalTimeoutError(
                        "Deadline exceeded", op=f"graph_closure_{direction}", stage="execute"
                    )
            reached.append(v)

        reached_set = set(reached)
        if any(p == seed or p in reached_set for p in view.predecessors(seed)):
            reached.append(seed)

        if stop_type is not None:
            return [n for n in reached if n.type == stop_type]
        return reached
