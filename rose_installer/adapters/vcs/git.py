"""
Git adapter — checkout operations on the ROSE source tree.

Provides clone, pull and rev-parse through the adapter protocol.
Uses the git CLI — never raw API calls.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from rose_installer.adapters.base import Adapter, ExecutionContext
from rose_installer.adapters.shell.command import child_environment, stream_command
from rose_installer.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git version control operations.

    Action params:
        operation (str): One of 'clone', 'pull', 'rev-parse'.
        url (str): Repository URL (for 'clone').
        dest (str): Clone destination (for 'clone', default: '.').
        ref (str): Revision to resolve (for 'rev-parse', default: 'HEAD').
    """

    VALID_OPS = {"clone", "pull", "rev-parse"}

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in self.VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.VALID_OPS))}"

        if operation == "clone" and not context.params.get("url"):
            return False, "Missing required param: 'url' for clone operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        try:
            if operation == "clone":
                return self._clone(context)
            elif operation == "pull":
                return self._streamed(context, ["git", "pull"])
            else:
                return self._rev_parse(context)
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Git error: {e}",
            )

    # ── Operations ──────────────────────────────────────────────

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        url = ctx.params["url"]
        dest = ctx.params.get("dest", ".")
        logger.info("git clone %s...", url)
        return self._streamed(ctx, ["git", "clone", url, dest])

    def _rev_parse(self, ctx: ExecutionContext) -> Receipt:
        ref = ctx.params.get("ref", "HEAD")
        result = subprocess.run(
            ["git", "rev-parse", ref],
            cwd=ctx.working_dir,
            env=child_environment(ctx.env),
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode != 0:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=result.stderr.strip() or "git rev-parse failed",
            )
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=result.stdout.strip(),
        )

    # ── Helpers ─────────────────────────────────────────────────

    def _streamed(self, ctx: ExecutionContext, cmd: list[str]) -> Receipt:
        code, tail = stream_command(cmd, cwd=ctx.working_dir, env=ctx.env)
        if code == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output="\n".join(tail),
                metadata={"return_code": 0},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=f"{' '.join(cmd[:2])} exited with code {code}",
            output="\n".join(tail),
            metadata={"return_code": code},
        )
