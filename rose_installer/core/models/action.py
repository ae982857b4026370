"""
Action and Receipt models — the execution contract.

Actions represent requested operations. Receipts represent results.
Stages send Actions through the adapter registry and get Receipts
back. Adapters never raise; stages decide what a failed Receipt means.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Action(BaseModel):
    """A requested operation to be executed by an adapter."""

    id: str                         # unique action identifier
    adapter: str                    # which adapter handles this
    stage: str = ""                 # pipeline stage that issued it
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """Result of an adapter execution.

    The adapter NEVER raises exceptions — failures are captured here.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )
