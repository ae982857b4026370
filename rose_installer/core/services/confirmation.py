"""
Confirmation policy — the one place that knows whether a human is watching.

Injected once at startup. ``AutoConfirm`` accepts every default (the
``-u`` unattended mode); ``PromptConfirm`` asks on the terminal.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import click

logger = logging.getLogger(__name__)


class ConfirmationPolicy(ABC):
    """How questions to the operator get answered."""

    interactive: bool = False

    @abstractmethod
    def confirm(self, question: str, default: bool = True) -> bool:
        """Yes/no question."""

    @abstractmethod
    def pause(self, message: str) -> None:
        """Block until the operator is ready to continue."""

    @abstractmethod
    def choose(self, prompt: str, default: str) -> str:
        """Free-form answer, ``default`` when left empty."""


class AutoConfirm(ConfirmationPolicy):
    """Unattended mode: every question takes its default answer."""

    def confirm(self, question: str, default: bool = True) -> bool:
        logger.info("%s %s (unattended)", question, "yes" if default else "no")
        return default

    def pause(self, message: str) -> None:
        logger.debug("Not pausing (unattended): %s", message)

    def choose(self, prompt: str, default: str) -> str:
        return default


class PromptConfirm(ConfirmationPolicy):
    """Interactive mode: ask on the terminal and wait, without a timeout."""

    interactive = True

    def confirm(self, question: str, default: bool = True) -> bool:
        answer = click.confirm(question, default=default)
        logger.debug("%s -> %s", question, answer)
        return answer

    def pause(self, message: str) -> None:
        click.prompt(message, default="", show_default=False, prompt_suffix="")

    def choose(self, prompt: str, default: str) -> str:
        answer = click.prompt(prompt, default=default, show_default=False, prompt_suffix=": ")
        return str(answer).strip()


def policy_for(unattended: bool) -> ConfirmationPolicy:
    return AutoConfirm() if unattended else PromptConfirm()
