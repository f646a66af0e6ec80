"""Telemetry primitives — Span, @traced, trace_span, statement counting.

Off by default: a disabled ``@traced`` call costs one ContextVar lookup.
With ``--verbose`` every service call builds a span tree carrying timing,
annotations (strategy, BFS rounds, result counts) and the number of SQL
statements each span issued, and the tree lands in ``ServiceResult.meta``.
Statement counts make the round-trip profile of each traversal strategy
visible: one recursive query for ``cte``, one per level for ``bfs``.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

import structlog
from sqlalchemy import event

from genealogy.services.result import ServiceResult

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

_enabled: ContextVar[bool] = ContextVar("_enabled", default=False)
_active: ContextVar[Span | None] = ContextVar("_active", default=None)


@dataclass
class Span:
    """One timed step of a service call; children are nested steps."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    statements: int = 0
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def child(self, name: str) -> Span:
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.statements:
            out["statements"] = self.statements
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


def current_span() -> Span | None:
    """The innermost open span, or None when telemetry is off."""
    return _active.get() if _enabled.get() else None


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Open a child span under the active one.

    Yields None when telemetry is off or no ``@traced`` call is running, so
    callers guard annotations with ``if span:``.
    """
    parent = current_span()
    if parent is None:
        yield None
        return

    span = parent.child(name)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.end()
        _active.reset(token)


def _log_span(span: Span, *, ok: bool) -> None:
    structlog.get_logger("genealogy.telemetry").debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        statements=span.statements,
        ok=ok,
    )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:
    """Decorator: run a service method under a root span.

    The finished span tree is merged into ``ServiceResult.meta["telemetry"]``.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _active.set(span)
        ok = False
        try:
            result = func(*args, **kwargs)
            ok = result.ok if isinstance(result, ServiceResult) else True
        finally:
            span.end()
            _active.reset(token)
            _log_span(span, ok=ok)

        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def _count_statement(*_: Any) -> None:
    span = current_span()
    while span is not None:
        span.statements += 1
        span = span.parent


def instrument_engine(engine: Engine) -> None:
    """Count every SQL statement *engine* executes against the open spans.

    Safe to call repeatedly for one engine.
    """
    if not event.contains(engine, "before_cursor_execute", _count_statement):
        event.listen(engine, "before_cursor_execute", _count_statement)


def enable_telemetry() -> None:
    """Turn span collection on (AppContext does this for ``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
