"""
Adapter registry — central dispatch for all adapter operations.

Stages never talk to adapters directly — always through the registry,
which builds the execution context, validates, and times each call.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from rose_installer.adapters.base import Adapter, ExecutionContext
from rose_installer.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Register an adapter, replacing any with the same name."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Get availability status of all registered adapters."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status

    def execute_action(
        self,
        action: Action,
        working_dir: str = ".",
        env: dict[str, str] | None = None,
    ) -> Receipt:
        """Execute an action through the appropriate adapter.

        Resolves the adapter, validates the action, executes it and
        stamps the duration. Never raises.

        Args:
            action: The action to execute.
            working_dir: Directory the tool runs in.
            env: Environment overrides for child processes.

        Returns:
            Receipt with execution results.
        """
        start_time = time.monotonic()

        context = ExecutionContext(
            action=action,
            working_dir=working_dir,
            env=dict(env or {}),
        )

        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
            if not is_valid:
                return Receipt.failure(
                    adapter=action.adapter,
                    action_id=action.id,
                    error=f"Validation failed: {error_msg}",
                )
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            # Adapters are not supposed to raise
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt


def default_registry(http_timeout: int = 60) -> AdapterRegistry:
    """Registry wired with the real shell, git and http adapters."""
    from rose_installer.adapters.net.http import HttpAdapter
    from rose_installer.adapters.shell.command import ShellCommandAdapter
    from rose_installer.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter())
    registry.register(GitAdapter())
    registry.register(HttpAdapter(timeout=http_timeout))
    return registry
