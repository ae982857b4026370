"""
Adapter base — the protocol contract between stages and tools.

Stages only talk to git, make, configure and the download site
through this protocol, never by calling them directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from rose_installer.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action.

    ``env`` holds overrides layered on top of the parent environment
    (JAVA_HOME and the library search path resolved at startup).
    """

    action: Action
    working_dir: str = "."
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def params(self) -> dict[str, Any]:
        return self.action.params


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'git', 'http')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
