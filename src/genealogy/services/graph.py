"""GraphService — traversal and single-edge mutation over the edge store.

Five read operations (children, parents, descendants, ascendants,
first_descendants_of_type) and two writes (add_edge, remove_edge).
Closures are computed by one of three interchangeable strategies:

- ``cte``: a recursive query inside the store (one round trip).
- ``bfs``: breadth-first expansion here, one adjacency level per round
  trip, with a visited set keyed by ``(id, type)``.
- ``memory``: the store's NetworkX snapshot.

Every strategy deduplicates a node before expanding it, so each node is
expanded at most once however many paths reach it. That bounds the work
on convergent graphs and guarantees termination on cycles.

The service keeps no state between calls. Traversals are not snapshot
isolated: a concurrent write may or may not be visible to a multi-round
BFS.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from genealogy.domain.errors import GenealogyError, NodeTypeConflictError
from genealogy.domain.types import Direction, Edge, Node, TraversalStrategy
from genealogy.services.base import BaseService
from genealogy.services.result import ServiceResult
from genealogy.services.telemetry import Span, instrument_engine, trace_span, traced

if TYPE_CHECKING:
    from genealogy.infrastructure.store import EdgeStore


class GraphService(BaseService):
    """Handles graph traversal and edge mutation."""

    def __init__(
        self,
        store: EdgeStore,
        *,
        strategy: TraversalStrategy | str = TraversalStrategy.CTE,
        timeout: float | None = None,
    ) -> None:
        super().__init__(store, timeout=timeout)
        self._strategy = TraversalStrategy(strategy)
        instrument_engine(store.engine)

    @property
    def strategy(self) -> TraversalStrategy:
        return self._strategy

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _nodes_result(op: str, node_id: str, nodes: list[Node], **extra: Any) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "node_id": node_id,
                **extra,
                "count": len(nodes),
                "items": [n.to_dict() for n in nodes],
            },
        )

    def _resolve_seed(self, node_id: str, op: str, deadline: float | None) -> Node | None:
        """Find the stored type of *node_id*.

        Returns None for an id no edge references. An id stored under
        several types is a data-integrity error, not two seeds.
        """
        with trace_span("resolve_seed"):
            types = self._store.node_types(node_id, deadline=deadline)
        if not types:
            return None
        if len(types) > 1:
            raise NodeTypeConflictError(node_id, types, op=op, stage="resolve")
        return Node(id=node_id, type=types[0])

    # ------------------------------------------------------------------
    # Direct lookups
    # ------------------------------------------------------------------

    @traced
    def children(self, node_id: str, *, timeout: float | None = None) -> ServiceResult:
        """Targets of every edge leaving *node_id*. No recursion."""
        op = "children"
        deadline = self._deadline(timeout)
        try:
            seed = self._resolve_seed(node_id, op, deadline)
            nodes = [] if seed is None else self._store.query_by_source(node_id, deadline=deadline)
        except GenealogyError as exc:
            return self._failure(op, exc)
        return self._nodes_result(op, node_id, nodes)

    @traced
    def parents(self, node_id: str, *, timeout: float | None = None) -> ServiceResult:
        """Sources of every edge entering *node_id*. No recursion."""
        op = "parents"
        deadline = self._deadline(timeout)
        try:
            seed = self._resolve_seed(node_id, op, deadline)
            nodes = [] if seed is None else self._store.query_by_target(node_id, deadline=deadline)
        except GenealogyError as exc:
            return self._failure(op, exc)
        return self._nodes_result(op, node_id, nodes)

    # ------------------------------------------------------------------
    # Closures
    # ------------------------------------------------------------------

    @traced
    def descendants(self, node_id: str, *, timeout: float | None = None) -> ServiceResult:
        """Every node reachable from *node_id* along one or more forward edges.

        *node_id* itself is included once if a cycle leads back to it.
        """
        return self._closure_result("descendants", node_id, Direction.FORWARD, timeout=timeout)

    @traced
    def ascendants(self, node_id: str, *, timeout: float | None = None) -> ServiceResult:
        """Every node from which *node_id* is reachable (closure of the reverse graph)."""
        return self._closure_result("ascendants", node_id, Direction.BACKWARD, timeout=timeout)

    @traced
    def first_descendants_of_type(
        self,
        node_id: str,
        node_type: str,
        *,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Closest descendants of *node_type* along each forward path.

        A node of *node_type* is emitted and its outgoing edges are not
        followed; other nodes are passed through. The scan starts at the
        children, so the seed's own type never matters. A match reached
        by several paths appears once.

        Args:
            node_id: Seed node id.
            node_type: Type that stops expansion along a path.
            timeout: Seconds before the traversal is cancelled.
        """
        return self._closure_result(
            "first_descendants_of_type",
            node_id,
            Direction.FORWARD,
            stop_type=node_type,
            timeout=timeout,
        )

    def _closure_result(
        self,
        op: str,
        node_id: str,
        direction: Direction,
        *,
        stop_type: str | None = None,
        timeout: float | None = None,
    ) -> ServiceResult:
        deadline = self._deadline(timeout)
        extra: dict[str, Any] = {} if stop_type is None else {"node_type": stop_type}
        try:
            seed = self._resolve_seed(node_id, op, deadline)
            if seed is None:
                return self._nodes_result(op, node_id, [], **extra)
            nodes = self._closure(seed, direction, stop_type=stop_type, deadline=deadline)
        except GenealogyError as exc:
            return self._failure(op, exc)
        return self._nodes_result(op, node_id, nodes, **extra)

    def _closure(
        self,
        seed: Node,
        direction: Direction,
        *,
        stop_type: str | None,
        deadline: float | None,
    ) -> list[Node]:
        with trace_span("closure") as span:
            if span:
                span.annotate("strategy", str(self._strategy))
                span.annotate("direction", str(direction))

            if self._strategy is TraversalStrategy.CTE:
                nodes = self._store.query_recursive(
                    seed, direction, stop_type=stop_type, deadline=deadline
                )
            elif self._strategy is TraversalStrategy.MEMORY:
                nodes = self._store.graph.closure(
                    seed, direction, stop_type=stop_type, deadline=deadline
                )
            else:
                nodes = self._expand(
                    seed, direction, stop_type=stop_type, deadline=deadline, span=span
                )

            if span:
                span.annotate("count", len(nodes))
        return nodes

    def _expand(
        self,
        seed: Node,
        direction: Direction,
        *,
        stop_type: str | None,
        deadline: float | None,
        span: Span | None = None,
    ) -> list[Node]:
        """Level-by-level BFS with dedup-before-expand.

        ``expanded`` holds every node whose edges were (or are about to be)
        fetched; a node enters it once, so no adjacency level is requested
        twice for the same node. ``emitted`` keeps result order stable.
        """
        expanded: set[Node] = {seed}
        emitted: set[Node] = set()
        order: list[Node] = []
        frontier = [seed]
        rounds = 0

        while frontier:
            rounds += 1
            next_frontier: list[Node] = []
            for edge in self._store.query_level(frontier, direction, deadline=deadline):
                node = edge.target if direction is Direction.FORWARD else edge.source
                if node not in emitted:
                    emitted.add(node)
                    order.append(node)
                if stop_type is not None and node.type == stop_type:
                    continue
                if node not in expanded:
                    expanded.add(node)
                    next_frontier.append(node)
            frontier = next_frontier

        if span:
            span.annotate("rounds", rounds)
            span.annotate("expanded", len(expanded))

        if stop_type is not None:
            return [n for n in order if n.type == stop_type]
        return order

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    def add_edge(
        self,
        source: Node,
        target: Node,
        *,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Insert the directed edge *source* -> *target*.

        Any type strings are accepted. Fails with ``DUPLICATE_EDGE`` if the
        tuple is already stored and ``NODE_TYPE_CONFLICT`` if an endpoint id
        is stored under another type; nothing is written on failure.
        """
        op = "add_edge"
        try:
            self._store.insert_edge(source, target, deadline=self._deadline(timeout))
        except GenealogyError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"source": source.to_dict(), "target": target.to_dict()},
        )

    @traced
    def remove_edge(
        self,
        source: Node,
        target: Node,
        *,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Delete the edge matching all four fields. Absent edges are a no-op."""
        op = "remove_edge"
        warnings: list[str] = []
        try:
            removed = self._store.delete_edge(source, target, deadline=self._deadline(timeout))
        except GenealogyError as exc:
            return self._failure(op, exc)
        if removed == 0:
            warnings.append(f"No edge {source.id} -> {target.id}; nothing removed")
        return ServiceResult(
            ok=True,
            op=op,
            data={"source": source.to_dict(), "target": target.to_dict(), "removed": removed},
            warnings=warnings,
        )

    @traced
    def load_edges(self, edges: Iterable[Edge]) -> ServiceResult:
        """Add edges one at a time, stopping at the first failure.

        Not transactional: edges added before a failure stay stored, and
        the failed result reports how many there were.
        """
        op = "load_edges"
        added = 0
        for edge in edges:
            try:
                self._store.insert_edge(edge.source, edge.target, deadline=self._deadline())
            except GenealogyError as exc:
                failed = self._failure(op, exc)
                return failed.model_copy(update={"data": {"added": added}})
            added += 1
        return ServiceResult(ok=True, op=op, data={"added": added})
