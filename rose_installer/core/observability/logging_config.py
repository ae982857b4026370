"""
Logging configuration — central setup for the installer.

Called once at startup by main.py.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Console levels are resolved in precedence order:
    CLI flag  >  ROSE_INSTALL_LOG_LEVEL env var  >  INFO (default)

Each run additionally writes a session log under ``<workspace>/logs``
holding every message and every line of child-process output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

# ── Format strings ──────────────────────────────────────────────

# INFO level — plain, the way a build script prints
_FMT_MINIMAL = "%(message)s"

# DEBUG level — full diagnostic with file:line
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

# Session log — timestamped, child output included verbatim
_FMT_SESSION = "%(asctime)s %(levelname)-5s %(message)s"
_DATEFMT_SESSION = "%Y-%m-%d %H:%M:%S"

SESSION_LOG_PREFIX = "rose-install"
_SESSION_STAMP = "%m-%d-%Y_%H-%M-%S"

# Third-party loggers that are noisy at DEBUG
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging(
    level: str = "INFO",
    quiet_third_party: bool = True,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Console log level name (DEBUG, INFO, WARNING, ERROR).
        quiet_third_party: Keep noisy third-party loggers at WARNING
            unless we're at DEBUG level.
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    # The session handler wants everything; the console filters on its own
    root.setLevel(logging.DEBUG)

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def session_log_name(started: datetime | None = None) -> str:
    """File name of the session log for a run started at ``started``."""
    stamp = (started or datetime.now()).strftime(_SESSION_STAMP)
    return f"{SESSION_LOG_PREFIX}.{stamp}.log"


@contextmanager
def session_log(logs_dir: Path, started: datetime | None = None) -> Iterator[Path]:
    """Capture everything logged inside the block into a timestamped file.

    The file is opened in append mode and the handler is removed on
    exit, whether the block succeeds or raises.
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    path = logs_dir / session_log_name(started)

    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FMT_SESSION, datefmt=_DATEFMT_SESSION))

    root = logging.getLogger()
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    try:
        yield path
    finally:
        root.removeHandler(handler)
        root.setLevel(previous_level)
        handler.close()


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.INFO
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric
