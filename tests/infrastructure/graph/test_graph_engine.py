"""Tests for GraphEngine — snapshot lifecycle and in-memory closures."""

from __future__ import annotations

import time

import pytest

from genealogy.domain.errors import TraversalTimeoutError
from genealogy.domain.types import Direction
from genealogy.infrastructure.store import EdgeStore
from tests.conftest import chain, n


def _load(store: EdgeStore, *paths: list) -> None:
    seen = set()
    for path in paths:
        for source, target in path:
            if (source, target) not in seen:
                seen.add((source, target))
                store.insert_edge(source, target)


class TestSnapshot:
    def test_lazy_build(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B", "c:C"))
        g = store.graph.graph()
        assert set(g.nodes) == {n("a:A"), n("b:B"), n("c:C")}
        assert g.has_edge(n("a:A"), n("b:B"))

    def test_cached_between_reads(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B"))
        assert store.graph.graph() is store.graph.graph()

    def test_invalidate_forces_rebuild(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B"))
        first = store.graph.graph()
        store.graph.invalidate()
        assert store.graph.graph() is not first

    def test_empty_store(self, store: EdgeStore) -> None:
        assert store.graph.graph().number_of_nodes() == 0
        assert store.graph.closure(n("a:A"), Direction.FORWARD) == []


class TestClosure:
    def test_forward_is_breadth_first(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B", "d:D"), chain("a:A", "c:C"))
        result = store.graph.closure(n("a:A"), Direction.FORWARD)
        assert set(result[:2]) == {n("b:B"), n("c:C")}
        assert result[2] == n("d:D")

    def test_backward(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B", "c:C"))
        assert store.graph.closure(n("c:C"), Direction.BACKWARD) == [n("b:B"), n("a:A")]

    def test_seed_excluded_without_cycle(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B"))
        assert n("a:A") not in store.graph.closure(n("a:A"), Direction.FORWARD)

    def test_seed_included_on_cycle(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B", "a:A"))
        result = store.graph.closure(n("a:A"), Direction.FORWARD)
        assert sorted(result) == [n("a:A"), n("b:B")]

    def test_self_loop(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "a:A"))
        assert store.graph.closure(n("a:A"), Direction.FORWARD) == [n("a:A")]

    def test_stop_type(self, store: EdgeStore) -> None:
        _load(store, chain("p:P", "s:S", "j:J", "c:C", "k:J"))
        result = store.graph.closure(n("p:P"), Direction.FORWARD, stop_type="J")
        assert result == [n("j:J")]

    def test_stop_type_ignores_seed_type(self, store: EdgeStore) -> None:
        _load(store, chain("j1:J", "s:S", "j2:J", "j3:J"))
        result = store.graph.closure(n("j1:J"), Direction.FORWARD, stop_type="J")
        assert result == [n("j2:J")]

    def test_stop_type_seed_on_cycle(self, store: EdgeStore) -> None:
        _load(store, chain("j:J", "s:S", "j:J"))
        result = store.graph.closure(n("j:J"), Direction.FORWARD, stop_type="J")
        assert result == [n("j:J")]


class TestConcurrentWrites:
    def test_write_during_build_is_not_cached_away(
        self, store: EdgeStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _load(store, chain("a:A", "b:B"))
        read_edges = store.all_edges
        pending = [(n("b:B"), n("c:C"))]

        def read_then_write(**kwargs: object) -> list:
            edges = read_edges(**kwargs)  # type: ignore[arg-type]
            while pending:
                store.insert_edge(*pending.pop())
            return edges

        monkeypatch.setattr(store, "all_edges", read_then_write)

        # this build read the relation before b->c committed
        assert store.graph.closure(n("a:A"), Direction.FORWARD) == [n("b:B")]
        assert store.graph.closure(n("a:A"), Direction.FORWARD) == [n("b:B"), n("c:C")]


class TestDeadline:
    def test_walk_over_cached_graph_is_cancelled(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B", "c:C"))
        store.graph.graph()
        with pytest.raises(TraversalTimeoutError) as exc_info:
            store.graph.closure(n("a:A"), Direction.FORWARD, deadline=time.monotonic() - 1)
        assert exc_info.value.stage == "execute"

    def test_future_deadline_completes(self, store: EdgeStore) -> None:
        _load(store, chain("a:A", "b:B", "c:C"))
        result = store.graph.closure(
            n("a:A"), Direction.FORWARD, deadline=time.monotonic() + 60
        )
        assert result == [n("b:B"), n("c:C")]
