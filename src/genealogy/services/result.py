"""ServiceResult and ServiceError — the contract every operation returns.

INVARIANT: All service-layer methods return ServiceResult. Store errors
are converted into a ServiceError here, never raised past the service.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from genealogy.domain.errors import GenealogyError
from genealogy.domain.types import Node


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult.

    ``detail`` always carries the failing ``op`` and ``stage`` when the
    error came from the store.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"descendants"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def from_error(cls, op: str, exc: GenealogyError) -> ServiceResult:
        """Failed result carrying the error code, message and op/stage detail."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=exc.code, message=exc.message, detail=exc.detail()),
        )

    @property
    def nodes(self) -> list[Node]:
        """Decode ``data["items"]`` back into nodes (empty on failure)."""
        return [Node.from_dict(item) for item in self.data.get("items", [])]
