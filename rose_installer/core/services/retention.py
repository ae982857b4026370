"""
Retention — keep the newest artifact per category, delete the rest.

Categories: downloaded archives and unpacked source trees (archive
origin only), build directories, install directories. The target of
the ``latest`` link is never deleted.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from rose_installer.core.models.origin import Archive
from rose_installer.core.services.identity import downloaded_archives, newest_first
from rose_installer.core.services.layout import LayoutPlanner

logger = logging.getLogger(__name__)

UNPACKED_GLOB = "rose-0.*"


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def prune(entries: list[Path], label: str, protected: set[Path] | None = None) -> list[Path]:
    """Delete all but the newest of ``entries``.

    Deletion failures are logged and skipped.

    Returns:
        The paths that were actually removed.
    """
    protected = protected or set()
    removed: list[Path] = []
    for path in newest_first(entries)[1:]:
        if path.resolve() in protected:
            logger.info("Keeping %s (target of latest)", path)
            continue
        logger.info("Removing old %s: %s", label, path)
        try:
            _remove(path)
        except OSError as e:
            logger.warning("Could not remove %s: %s", path, e)
            continue
        removed.append(path)
    return removed


def _children(directory: Path) -> list[Path]:
    return list(directory.iterdir()) if directory.is_dir() else []


def run_retention(layout: LayoutPlanner) -> dict[str, list[str]]:
    """Apply retention to every category of the workspace.

    Returns:
        Category → removed paths.
    """
    protected: set[Path] = set()
    if layout.latest_link.is_symlink():
        protected.add(layout.latest_link.resolve())

    removed: dict[str, list[Path]] = {}
    if isinstance(layout.origin, Archive):
        removed["archives"] = prune(downloaded_archives(layout.src_root), "downloaded src")
        trees = [p for p in layout.src_root.glob(UNPACKED_GLOB) if p.is_dir()]
        removed["sources"] = prune(trees, "unpacked src")

    removed["builds"] = prune(_children(layout.build_root), "build dir")
    removed["installs"] = prune(_children(layout.install_root), "install dir", protected)

    return {k: [str(p) for p in v] for k, v in removed.items()}
