"""Tests for telemetry spans and the @traced decorator."""

from __future__ import annotations

from genealogy.infrastructure.store import EdgeStore
from genealogy.services.graph import GraphService
from genealogy.services.result import ServiceResult
from genealogy.services.telemetry import (
    Span,
    current_span,
    disable_telemetry,
    enable_telemetry,
    instrument_engine,
    trace_span,
    traced,
)
from tests.conftest import add_edges, chain


class TestSpan:
    def test_duration_zero_until_ended(self) -> None:
        span = Span(name="x")
        assert span.duration_ms == 0.0
        span.end()
        assert span.duration_ms >= 0.0

    def test_to_dict_nests_children(self) -> None:
        parent = Span(name="outer")
        child = parent.child("inner")
        child.annotate("count", 3)
        child.end()
        parent.end()
        out = parent.to_dict()
        assert out["name"] == "outer"
        assert out["children"][0]["name"] == "inner"
        assert out["children"][0]["annotations"] == {"count": 3}
        assert "annotations" not in out
        assert "statements" not in out
        assert child.parent is parent


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("x") as span:
            assert span is None

    def test_no_parent_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("x") as span:
            assert span is None


class TestTraced:
    def test_disabled_leaves_meta_alone(self) -> None:
        @traced
        def op() -> ServiceResult:
            return ServiceResult(ok=True, op="op")

        assert op().meta is None

    def test_enabled_injects_telemetry(self) -> None:
        @traced
        def op() -> ServiceResult:
            with trace_span("step") as span:
                assert span is not None
                span.annotate("rounds", 2)
            return ServiceResult(ok=True, op="op", meta={"kept": True})

        enable_telemetry()
        result = op()
        assert result.meta is not None
        assert result.meta["kept"] is True
        tree = result.meta["telemetry"]
        assert tree["name"].endswith("op")
        assert tree["children"][0] == {
            "name": "step",
            "duration_ms": tree["children"][0]["duration_ms"],
            "annotations": {"rounds": 2},
        }

    def test_disable_turns_it_off(self) -> None:
        @traced
        def op() -> ServiceResult:
            return ServiceResult(ok=True, op="op")

        enable_telemetry()
        disable_telemetry()
        assert op().meta is None


class TestServiceSpans:
    def test_bfs_annotations(self, store: EdgeStore) -> None:
        svc = GraphService(store, strategy="bfs")
        add_edges(svc, chain("a:A", "b:B", "c:C"))
        enable_telemetry()
        result = svc.descendants("a")
        tree = result.meta["telemetry"]  # type: ignore[index]
        names = [c["name"] for c in tree["children"]]
        assert names == ["resolve_seed", "closure"]
        closure = tree["children"][1]["annotations"]
        assert closure["strategy"] == "bfs"
        assert closure["direction"] == "forward"
        assert closure["count"] == 2
        # a, then b, then c (no edges): three level queries
        assert closure["rounds"] == 3

    def test_failed_result_still_traced(self, store: EdgeStore) -> None:
        svc = GraphService(store)
        enable_telemetry()
        result = svc.descendants("a", timeout=1e-9)
        assert not result.ok
        assert "telemetry" in result.meta  # type: ignore[operator]

    def test_statement_counts_per_strategy(self, store: EdgeStore) -> None:
        add_edges(GraphService(store), chain("a:A", "b:B", "c:C"))
        enable_telemetry()
        counts: dict[str, int] = {}
        for strategy in ("cte", "bfs"):
            result = GraphService(store, strategy=strategy).descendants("a")
            tree = result.meta["telemetry"]  # type: ignore[index]
            resolve, closure = tree["children"]
            assert resolve["statements"] == 1
            counts[strategy] = closure["statements"]
            assert tree["statements"] == 1 + closure["statements"]
        assert counts == {"cte": 1, "bfs": 3}


class TestInstrumentEngine:
    def test_idempotent(self, store: EdgeStore) -> None:
        instrument_engine(store.engine)
        instrument_engine(store.engine)

        @traced
        def op() -> ServiceResult:
            store.count()
            return ServiceResult(ok=True, op="op")

        enable_telemetry()
        assert op().meta["telemetry"]["statements"] == 1  # type: ignore[index]

    def test_no_counting_when_disabled(self, store: EdgeStore) -> None:
        instrument_engine(store.engine)
        store.count()
        assert current_span() is None
