"""
Shared test fixtures — fake Boost/JDK trees and fake tool adapters.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rose_installer.adapters.base import ExecutionContext
from rose_installer.adapters.mock import MockAdapter
from rose_installer.adapters.registry import AdapterRegistry
from rose_installer.core.models.action import Receipt
from rose_installer.core.models.config import InstallerConfig
from rose_installer.core.models.environment import ResolvedEnv


class FakeGit(MockAdapter):
    """Git double: clone creates .git, pull advances to the next revision."""

    def __init__(self, revisions: tuple[str, ...] = ("a1b2c3d4",)):
        super().__init__(adapter_name="git")
        self.revisions = list(revisions)
        self.head = 0

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params.get("operation")
        if operation == "rev-parse" and context.action.id not in self.scripted:
            self.calls.append(context)
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=self.revisions[self.head] + "\n",
            )

        receipt = super().execute(context)
        if receipt.failed:
            return receipt
        if operation == "clone":
            (Path(context.working_dir) / ".git").mkdir()
        elif operation == "pull":
            self.head = min(self.head + 1, len(self.revisions) - 1)
        return receipt


class FakeShell(MockAdapter):
    """Shell double that leaves behind what bootstrap/configure/make would."""

    def __init__(self):
        super().__init__(adapter_name="shell")
        self.prefix: Path | None = None
        self.configure_runs = 0

    def execute(self, context: ExecutionContext) -> Receipt:
        receipt = super().execute(context)
        if receipt.failed:
            return receipt

        cwd = Path(context.working_dir)
        action_id = context.action.id
        if action_id == "bootstrap":
            (cwd / "configure").write_text("#!/bin/sh\n")
        elif action_id == "configure":
            self.configure_runs += 1
            for arg in context.params["command"]:
                if arg.startswith("--prefix="):
                    self.prefix = Path(arg.split("=", 1)[1])
            (cwd / "Makefile").write_text("all:\n")
            (cwd / f"config-run-{self.configure_runs}.log").write_text("")
        elif action_id == "make":
            (cwd / "librose.la").write_text("")
        elif action_id == "make-install":
            assert self.prefix is not None
            bin_dir = self.prefix / "bin"
            bin_dir.mkdir(parents=True, exist_ok=True)
            (bin_dir / "identityTranslator").write_text("")
        return receipt


@pytest.fixture(autouse=True)
def _reset_root_logger():
    """Keep handlers added by setup_logging/session_log from leaking between tests."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def boost_dir(tmp_path: Path) -> Path:
    """A minimal Boost install with lib/ only."""
    root = tmp_path / "boost"
    (root / "include" / "boost").mkdir(parents=True)
    (root / "lib").mkdir()
    (root / "lib" / "libboost_program_options.so").write_text("")
    return root


@pytest.fixture
def jdk_dir(tmp_path: Path) -> Path:
    """A JDK 8 style tree with jre/lib/amd64/server/libjvm.so."""
    root = tmp_path / "jdk"
    server = root / "jre" / "lib" / "amd64" / "server"
    server.mkdir(parents=True)
    (server / "libjvm.so").write_text("")
    return root


@pytest.fixture
def resolved_env(boost_dir: Path, jdk_dir: Path) -> ResolvedEnv:
    return ResolvedEnv(
        boost_root=str(boost_dir),
        boost_libdir=str(boost_dir / "lib"),
        java_home=str(jdk_dir),
        java_libraries=f"{jdk_dir}/jre/lib:{jdk_dir}/jre/lib/amd64/server",
        library_path=f"{jdk_dir}/jre/lib:{jdk_dir}/jre/lib/amd64/server:{boost_dir}/lib",
    )


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit(revisions=("a1b2c3d4", "e5f6a7b8"))


@pytest.fixture
def fake_shell() -> FakeShell:
    return FakeShell()


@pytest.fixture
def fake_http() -> MockAdapter:
    return MockAdapter(adapter_name="http")


@pytest.fixture
def registry(fake_git: FakeGit, fake_shell: FakeShell, fake_http: MockAdapter) -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.register(fake_git)
    reg.register(fake_shell)
    reg.register(fake_http)
    return reg


@pytest.fixture
def config() -> InstallerConfig:
    return InstallerConfig()
