"""BaseService — shared foundation for genealogy services.

Every service receives an :class:`EdgeStore` at construction time and
keeps no other state between calls.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from genealogy.services.result import ServiceResult

if TYPE_CHECKING:
    from genealogy.domain.errors import GenealogyError
    from genealogy.infrastructure.store import EdgeStore

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class GraphService(BaseService):
            def children(self, node_id: str) -> ServiceResult:
                try:
                    nodes = self._store.query_by_source(node_id)
                except GenealogyError as exc:
                    return self._failure("children", exc)
                ...
    """

    def __init__(self, store: EdgeStore, *, timeout: float | None = None) -> None:
        self._store = store
        self._timeout = timeout if timeout else None

    @property
    def store(self) -> EdgeStore:
        return self._store

    def _deadline(self, timeout: float | None = None) -> float | None:
        """Absolute deadline for one call; *timeout* overrides the default."""
        effective = timeout if timeout is not None else self._timeout
        if not effective:
            return None
        return time.monotonic() + effective

    @staticmethod
    def _failure(op: str, exc: GenealogyError) -> ServiceResult:
        """Convert a store error into a failed result, logging it once."""
        logger.warning("%s failed: %s", op, exc)
        return ServiceResult.from_error(op, exc)
