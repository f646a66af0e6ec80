"""Shared pytest fixtures and test helpers for genealogy tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from genealogy.domain.types import Node, TraversalStrategy
from genealogy.infrastructure.database.engine import create_db_engine
from genealogy.infrastructure.store import EdgeStore
from genealogy.services.graph import GraphService
from genealogy.services.result import ServiceResult
from genealogy.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _restore_global_state() -> Iterator[None]:
    """Undo logging/telemetry changes made by configure_logging and --verbose."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    pkg_level = logging.getLogger("genealogy").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("genealogy").setLevel(pkg_level)
    disable_telemetry()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep GENEALOGY_* variables from the developer shell out of tests."""
    for key in list(os.environ):
        if key.startswith("GENEALOGY_"):
            monkeypatch.delenv(key)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def _isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI commands from tmp_path so the default store lands there."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'genealogy.db'}"


@pytest.fixture
def db_engine(db_url: str) -> Iterator[Engine]:
    engine = create_db_engine(db_url)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(db_engine: Engine) -> EdgeStore:
    """Edge store with an empty ``edge`` table."""
    return EdgeStore(db_engine)


@pytest.fixture(params=[s.value for s in TraversalStrategy])
def service(request: pytest.FixtureRequest, store: EdgeStore) -> GraphService:
    """GraphService, once per traversal strategy."""
    return GraphService(store, strategy=request.param)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def n(spec: str) -> Node:
    """``"p1:P"`` -> Node("p1", "P")."""
    node_id, _, node_type = spec.rpartition(":")
    return Node(node_id, node_type)


def chain(*specs: str) -> list[tuple[Node, Node]]:
    """Consecutive pairs of a path: chain("a:A", "b:B", "c:C") -> a->b, b->c."""
    nodes = [n(s) for s in specs]
    return list(zip(nodes, nodes[1:], strict=False))


def add_edges(svc: GraphService, *paths: list[tuple[Node, Node]]) -> None:
    """Add every edge of every path, skipping edges already added."""
    seen: set[tuple[Node, Node]] = set()
    for path in paths:
        for source, target in path:
            if (source, target) in seen:
                continue
            seen.add((source, target))
            result = svc.add_edge(source, target)
            assert result.ok, result.error


def ids(result: ServiceResult) -> list[str]:
    assert result.ok, result.error
    return [item["id"] for item in result.data["items"]]
