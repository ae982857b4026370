"""
Archive helpers — find the newest release link and unpack tarballs.
"""

from __future__ import annotations

import logging
import re
import tarfile
from pathlib import Path

logger = logging.getLogger(__name__)


def latest_archive_link(index_html: str, pattern: str) -> str | None:
    """First link on the release page matching ``pattern``.

    The file-release page lists the newest package first.
    """
    match = re.search(pattern, index_html)
    return match.group(0) if match else None


def archive_file_name(link: str) -> str:
    return link.rstrip("/").rsplit("/", 1)[-1]


def unpack_archive(archive: Path, dest_dir: Path) -> list[str]:
    """Extract a .tar.gz into ``dest_dir``.

    Returns:
        Top-level entry names found in the archive.

    Raises:
        tarfile.TarError, OSError: If the archive is unreadable.
    """
    with tarfile.open(archive, "r:gz") as tf:
        top = sorted({m.name.split("/", 1)[0] for m in tf.getmembers() if m.name})
        tf.extractall(dest_dir, filter="data")
    logger.debug("Unpacked %s: %s", archive.name, ", ".join(top))
    return top
