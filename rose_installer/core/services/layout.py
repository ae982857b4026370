"""
Workspace layout — where sources, builds and installs live.

    <base>/<repo|tgz>/
        src/                 checkout, or downloaded tarballs + unpacked trees
        build/<identity>/
        install/<identity>/
        logs/
        latest -> install/<identity>

Paths that depend on the identity are recomputed on every call, so a
stage that runs after an acquire automatically targets the new source.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rose_installer.adapters.registry import AdapterRegistry
from rose_installer.core.models.origin import SourceOrigin, VersionControlled
from rose_installer.core.services.identity import current_identity

logger = logging.getLogger(__name__)

SUBDIRS = ("src", "build", "install", "logs")
LATEST_LINK = "latest"


class LayoutPlanner:
    """Maps the current source identity onto workspace paths."""

    def __init__(
        self,
        root: Path,
        origin: SourceOrigin,
        registry: AdapterRegistry,
    ):
        self.root = root
        self.origin = origin
        self._registry = registry

    @classmethod
    def for_origin(
        cls,
        base_dir: Path,
        origin: SourceOrigin,
        registry: AdapterRegistry,
    ) -> LayoutPlanner:
        """One workspace per origin: ``<base>/<repo>`` or ``<base>/tgz``."""
        return cls(base_dir.resolve() / origin.workspace_name, origin, registry)

    # ── Fixed paths ─────────────────────────────────────────────

    @property
    def src_root(self) -> Path:
        return self.root / "src"

    @property
    def build_root(self) -> Path:
        return self.root / "build"

    @property
    def install_root(self) -> Path:
        return self.root / "install"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def latest_link(self) -> Path:
        return self.root / LATEST_LINK

    def ensure(self) -> None:
        """Create the workspace skeleton; a no-op when it already exists."""
        for name in SUBDIRS:
            (self.root / name).mkdir(parents=True, exist_ok=True)

    # ── Identity-derived paths ──────────────────────────────────

    def identity(self) -> str:
        return current_identity(self.origin, self.src_root, self._registry)

    def source_dir(self) -> Path:
        if isinstance(self.origin, VersionControlled):
            return self.src_root
        return self.src_root / self.identity()

    def build_dir(self) -> Path:
        return self.build_root / self.identity()

    def install_prefix(self) -> Path:
        return self.install_root / self.identity()
