"""
Shell command adapter — run configure, make and friends.

Unlike a capture-and-return runner, output is streamed line by line
into the ``rose_installer.output`` logger while the command runs, so
hour-long builds show progress and the session log receives the full
interleaved output.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import threading
import time
from collections import deque
from pathlib import Path

from rose_installer.adapters.base import Adapter, ExecutionContext
from rose_installer.core.models.action import Receipt

logger = logging.getLogger(__name__)
output_logger = logging.getLogger("rose_installer.output")

# Lines of output kept on the receipt for error reporting
_TAIL_LINES = 40


def child_environment(overrides: dict[str, str]) -> dict[str, str]:
    """Parent environment with ``overrides`` layered on top."""
    env = os.environ.copy()
    env.update(overrides)
    return env


def stream_command(
    cmd: list[str] | str,
    *,
    cwd: str,
    env: dict[str, str],
    timeout: int | None = None,
) -> tuple[int, list[str]]:
    """Run ``cmd`` and forward its merged stdout/stderr to the output logger.

    Returns:
        (return_code, last output lines).

    Raises:
        OSError: If the executable cannot be started.
        subprocess.TimeoutExpired: If ``timeout`` elapses.
    """
    use_shell = isinstance(cmd, str)
    tail: deque[str] = deque(maxlen=_TAIL_LINES)
    proc = subprocess.Popen(
        cmd,
        shell=use_shell,
        cwd=cwd,
        env=child_environment(env),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        bufsize=1,
    )
    assert proc.stdout is not None  # for type checkers

    # Reading blocks until the child closes its output, so the timeout
    # has to kill it from another thread.
    expired = threading.Event()

    def _expire() -> None:
        expired.set()
        proc.kill()

    timer = threading.Timer(timeout, _expire) if timeout else None
    if timer:
        timer.start()
    try:
        for line in proc.stdout:
            line = line.rstrip("\n")
            output_logger.info(line)
            tail.append(line)
        code = proc.wait()
    finally:
        if timer:
            timer.cancel()
        proc.stdout.close()

    if expired.is_set():
        raise subprocess.TimeoutExpired(cmd, timeout)
    return code, list(tail)


def render(cmd: list[str] | str) -> str:
    """Printable form of a command."""
    return cmd if isinstance(cmd, str) else shlex.join(cmd)


class ShellCommandAdapter(Adapter):
    """Execute commands and stream their output.

    Action params:
        command (list[str] | str): argv list, or a string run through the shell.
        timeout (int | None): Timeout in seconds (default: none, builds are long).
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.params.get("command")
        if not command:
            return False, "Missing required param: 'command'"

        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command = context.params["command"]
        timeout = context.params.get("timeout")
        shown = render(command)

        logger.debug("Executing: %s (cwd=%s)", shown, context.working_dir)
        start = time.monotonic()

        try:
            code, tail = stream_command(
                command,
                cwd=context.working_dir,
                env=context.env,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": shown, "timeout": timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": shown},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if code == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output="\n".join(tail),
                duration_ms=elapsed_ms,
                metadata={"command": shown, "return_code": code},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=f"Command exited with code {code}",
            output="\n".join(tail),
            duration_ms=elapsed_ms,
            metadata={"command": shown, "return_code": code},
        )
