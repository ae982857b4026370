"""
Mock adapter — stands in for the shell, git or http adapter in tests.

Every action succeeds unless a receipt was scripted for its action ID.
"""

from __future__ import annotations

from rose_installer.adapters.base import Adapter, ExecutionContext
from rose_installer.core.models.action import Receipt


class MockAdapter(Adapter):
    """Records what the stages asked for and answers from a script."""

    def __init__(self, adapter_name: str = "mock", available: bool = True):
        self._name = adapter_name
        self._available = available
        self.scripted: dict[str, Receipt] = {}
        self.calls: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def calls_for(self, action_id: str) -> list[ExecutionContext]:
        """Contexts received for one action ID, in call order."""
        return [c for c in self.calls if c.action.id == action_id]

    def is_available(self) -> bool:
        return self._available

    def set_output(self, action_id: str, output: str) -> None:
        """Make ``action_id`` succeed with ``output``."""
        self.scripted[action_id] = Receipt.success(
            adapter=self._name, action_id=action_id, output=output,
        )

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        """Make ``action_id`` fail with ``error``."""
        self.scripted[action_id] = Receipt.failure(
            adapter=self._name, action_id=action_id, error=error,
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.calls.append(context)
        scripted = self.scripted.get(context.action.id)
        if scripted is not None:
            return scripted
        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=f"[mock] {context.action.id}",
            metadata={"mock": True},
        )
