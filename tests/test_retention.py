"""
Tests for retention — newest entry per category survives.
"""

import logging
import os
from pathlib import Path

import pytest

from rose_installer.adapters.registry import AdapterRegistry
from rose_installer.core.models.origin import Archive, VersionControlled
from rose_installer.core.services import retention
from rose_installer.core.services.layout import LayoutPlanner
from rose_installer.core.services.retention import prune, run_retention


def _aged(path: Path, age: int, directory: bool = True) -> Path:
    """Create ``path`` with an mtime ``age`` seconds in the past."""
    if directory:
        path.mkdir(parents=True)
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
    stamp = 1_700_000_000 - age
    os.utime(path, (stamp, stamp))
    return path


class TestPrune:
    def test_keeps_newest(self, tmp_path: Path):
        old = _aged(tmp_path / "old", 300)
        mid = _aged(tmp_path / "mid", 200)
        new = _aged(tmp_path / "new", 100)

        removed = prune([old, new, mid], "build dir")

        assert sorted(removed) == sorted([old, mid])
        assert new.exists()
        assert not old.exists()
        assert not mid.exists()

    def test_single_entry_kept(self, tmp_path: Path):
        only = _aged(tmp_path / "only", 100)
        assert prune([only], "build dir") == []
        assert only.exists()

    def test_empty(self):
        assert prune([], "build dir") == []

    def test_protected_survives(self, tmp_path: Path):
        old = _aged(tmp_path / "old", 300)
        new = _aged(tmp_path / "new", 100)

        removed = prune([old, new], "install dir", protected={old.resolve()})

        assert removed == []
        assert old.exists()

    def test_removes_files(self, tmp_path: Path):
        old = _aged(tmp_path / "a.tar.gz", 300, directory=False)
        new = _aged(tmp_path / "b.tar.gz", 100, directory=False)
        assert prune([old, new], "downloaded src") == [old]


class TestRunRetention:
    @pytest.fixture
    def archive_layout(self, tmp_path: Path, registry: AdapterRegistry) -> LayoutPlanner:
        layout = LayoutPlanner.for_origin(tmp_path, Archive(), registry)
        layout.ensure()
        return layout

    def test_archive_categories(self, archive_layout: LayoutPlanner):
        src = archive_layout.src_root
        _aged(src / "rose-0.9.5a-without-EDG-100.tar.gz", 300, directory=False)
        _aged(src / "rose-0.9.5a-without-EDG-200.tar.gz", 100, directory=False)
        _aged(src / "rose-0.9.5a-100", 300)
        _aged(src / "rose-0.9.5a-200", 100)
        _aged(archive_layout.build_root / "rose-0.9.5a-100", 300)
        _aged(archive_layout.build_root / "rose-0.9.5a-200", 100)

        removed = run_retention(archive_layout)

        assert removed["archives"] == [str(src / "rose-0.9.5a-without-EDG-100.tar.gz")]
        assert removed["sources"] == [str(src / "rose-0.9.5a-100")]
        assert removed["builds"] == [str(archive_layout.build_root / "rose-0.9.5a-100")]
        assert removed["installs"] == []
        assert sorted(p.name for p in src.iterdir()) == [
            "rose-0.9.5a-200",
            "rose-0.9.5a-without-EDG-200.tar.gz",
        ]

    def test_git_origin_leaves_checkout(self, tmp_path: Path, registry: AdapterRegistry):
        layout = LayoutPlanner.for_origin(tmp_path, VersionControlled(), registry)
        layout.ensure()
        (layout.src_root / ".git").mkdir()
        _aged(layout.build_root / "a1b2c3d4", 300)
        _aged(layout.build_root / "e5f6a7b8", 100)

        removed = run_retention(layout)

        assert "archives" not in removed
        assert "sources" not in removed
        assert removed["builds"] == [str(layout.build_root / "a1b2c3d4")]
        assert (layout.src_root / ".git").is_dir()

    def test_latest_target_protected(self, archive_layout: LayoutPlanner):
        installs = archive_layout.install_root
        linked = _aged(installs / "rose-0.9.5a-100", 300)
        _aged(installs / "rose-0.9.5a-200", 100)
        archive_layout.latest_link.symlink_to(linked)

        removed = run_retention(archive_layout)

        assert removed["installs"] == []
        assert linked.is_dir()
        assert archive_layout.latest_link.resolve() == linked.resolve()

    def test_empty_workspace(self, archive_layout: LayoutPlanner):
        assert run_retention(archive_layout) == {
            "archives": [], "sources": [], "builds": [], "installs": [],
        }


class TestDeletionFailure:
    def test_failed_removal_is_logged_and_skipped(self, tmp_path: Path, monkeypatch, caplog):
        stuck = _aged(tmp_path / "stuck", 300)
        old = _aged(tmp_path / "old", 200)
        new = _aged(tmp_path / "new", 100)
        real_remove = retention._remove

        def remove(path: Path) -> None:
            if path == stuck:
                raise PermissionError(13, "Permission denied", str(path))
            real_remove(path)

        monkeypatch.setattr(retention, "_remove", remove)
        with caplog.at_level(logging.WARNING, logger="rose_installer.core.services.retention"):
            removed = prune([stuck, old, new], "build dir")

        assert removed == [old]
        assert stuck.exists()
        assert not old.exists()
        assert new.exists()
        assert any("Could not remove" in r.getMessage() and str(stuck) in r.getMessage()
                   for r in caplog.records)
