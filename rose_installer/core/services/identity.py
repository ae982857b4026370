"""
Source identity — which snapshot of ROSE is on disk right now.

The identity names the build and install directories, so it is never
stored: every caller recomputes it from the current disk state.

    git:     the checkout's HEAD revision
    archive: newest rose-0.9*-without-EDG-*.tar.gz, minus the marker
             and the extension
"""

from __future__ import annotations

import logging
from pathlib import Path

from rose_installer.adapters.registry import AdapterRegistry
from rose_installer.core.errors import NoSource
from rose_installer.core.models.action import Action
from rose_installer.core.models.origin import SourceOrigin, VersionControlled

logger = logging.getLogger(__name__)

ARCHIVE_GLOB = "rose-0.9*-without-EDG-*.tar.gz"
ARCHIVE_MARKER = "-without-EDG"
ARCHIVE_SUFFIX = ".tar.gz"


def newest_first(paths: list[Path]) -> list[Path]:
    """Sort by modification time, newest first.

    Equal timestamps fall back to the lexicographically greatest name.
    """
    return sorted(paths, key=lambda p: (p.lstat().st_mtime_ns, p.name), reverse=True)


def identity_from_archive_name(file_name: str) -> str:
    """``rose-0.9.5a-without-EDG-200.tar.gz`` → ``rose-0.9.5a-200``."""
    name = Path(file_name).name
    if name.endswith(ARCHIVE_SUFFIX):
        name = name[: -len(ARCHIVE_SUFFIX)]
    return name.replace(ARCHIVE_MARKER, "", 1)


def downloaded_archives(src_root: Path) -> list[Path]:
    """Matching tarballs in the download directory, newest first."""
    if not src_root.is_dir():
        return []
    return newest_first([p for p in src_root.glob(ARCHIVE_GLOB) if p.is_file()])


def archive_identity(src_root: Path) -> str:
    archives = downloaded_archives(src_root)
    if not archives:
        raise NoSource(f"No ROSE source package ({ARCHIVE_GLOB}) in {src_root}")
    return identity_from_archive_name(archives[0].name)


def revision_identity(src_root: Path, registry: AdapterRegistry) -> str:
    if not (src_root / ".git").exists():
        raise NoSource(f"No git checkout at {src_root}; run the download stage first")

    receipt = registry.execute_action(
        Action(id="git-rev-parse", adapter="git", params={"operation": "rev-parse"}),
        working_dir=str(src_root),
    )
    revision = receipt.output.strip()
    if not receipt.ok or not revision:
        raise NoSource(f"Cannot read the current revision of {src_root}: {receipt.error}")
    return revision


def current_identity(
    origin: SourceOrigin,
    src_root: Path,
    registry: AdapterRegistry,
) -> str:
    """Identity of the source currently on disk.

    Raises:
        NoSource: If there is no checkout or no downloaded archive.
    """
    if isinstance(origin, VersionControlled):
        return revision_identity(src_root, registry)
    return archive_identity(src_root)
