"""
Tests for adapter protocol, registry, mock, shell, git and http adapters.
"""

import logging
from pathlib import Path

import pytest

from rose_installer.adapters.base import ExecutionContext
from rose_installer.adapters.mock import MockAdapter
from rose_installer.adapters.net.http import HttpAdapter
from rose_installer.adapters.registry import AdapterRegistry, default_registry
from rose_installer.adapters.shell.command import ShellCommandAdapter, render
from rose_installer.adapters.vcs.git import GitAdapter
from rose_installer.core.models.action import Action, Receipt

# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter(adapter_name="test-mock")
        ctx = ExecutionContext(action=Action(id="op-1", adapter="test-mock"))
        receipt = mock.execute(ctx)
        assert receipt.ok
        assert receipt.metadata["mock"] is True
        assert mock.call_count == 1

    def test_failure_and_output(self):
        mock = MockAdapter()
        mock.set_failure("bad", "boom")
        mock.set_output("good", "payload")
        bad = mock.execute(ExecutionContext(action=Action(id="bad", adapter="mock")))
        good = mock.execute(ExecutionContext(action=Action(id="good", adapter="mock")))
        assert bad.failed and bad.error == "boom"
        assert good.output == "payload"
        assert len(mock.calls_for("good")) == 1

    def test_unavailable(self):
        assert not MockAdapter(available=False).is_available()


# ── Registry Tests ───────────────────────────────────────────────────


class _Exploding(MockAdapter):
    def execute(self, context):
        raise RuntimeError("kaboom")


class _Picky(MockAdapter):
    def validate(self, context):
        return False, "needs more params"


class TestRegistry:
    def test_register_replaces_same_name(self):
        reg = AdapterRegistry()
        first, second = MockAdapter(adapter_name="a"), MockAdapter(adapter_name="a")
        reg.register(first)
        reg.register(second)
        reg.execute_action(Action(id="x", adapter="a"))
        assert first.call_count == 0
        assert second.call_count == 1

    def test_status_reports_availability(self):
        reg = AdapterRegistry()
        reg.register(MockAdapter(adapter_name="up"))
        reg.register(MockAdapter(adapter_name="down", available=False))
        status = reg.adapter_status()
        assert status["up"]["available"] is True
        assert status["down"]["available"] is False
        assert status["down"]["type"] == "MockAdapter"

    def test_unknown_adapter(self):
        receipt = AdapterRegistry().execute_action(Action(id="x", adapter="nope"))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_validation_failure(self):
        reg = AdapterRegistry()
        reg.register(_Picky(adapter_name="picky"))
        receipt = reg.execute_action(Action(id="x", adapter="picky"))
        assert receipt.error == "Validation failed: needs more params"

    def test_adapter_exception_becomes_receipt(self):
        reg = AdapterRegistry()
        reg.register(_Exploding(adapter_name="boom"))
        receipt = reg.execute_action(Action(id="x", adapter="boom"))
        assert receipt.failed
        assert "kaboom" in receipt.error

    def test_context_carries_dir_and_env(self):
        reg = AdapterRegistry()
        mock = MockAdapter(adapter_name="m")
        reg.register(mock)
        reg.execute_action(Action(id="x", adapter="m"), working_dir="/src", env={"JAVA_HOME": "/jdk"})
        ctx = mock.calls[0]
        assert ctx.working_dir == "/src"
        assert ctx.env == {"JAVA_HOME": "/jdk"}

    def test_default_registry(self):
        reg = default_registry(http_timeout=5)
        assert sorted(reg.adapter_status()) == ["git", "http", "shell"]
        assert reg.adapter_status()["http"]["available"] is True


# ── Shell Adapter Tests ──────────────────────────────────────────────


def _shell(command, cwd: Path, env=None) -> Receipt:
    reg = AdapterRegistry()
    reg.register(ShellCommandAdapter())
    return reg.execute_action(
        Action(id="cmd", adapter="shell", params={"command": command}),
        working_dir=str(cwd), env=env,
    )


class TestShellCommandAdapter:
    def test_success(self, tmp_path: Path):
        receipt = _shell(["sh", "-c", "echo hello"], tmp_path)
        assert receipt.ok
        assert receipt.output == "hello"
        assert receipt.metadata["return_code"] == 0

    def test_nonzero_exit(self, tmp_path: Path):
        receipt = _shell(["sh", "-c", "echo hello; exit 3"], tmp_path)
        assert receipt.failed
        assert receipt.error == "Command exited with code 3"
        assert receipt.output == "hello"

    def test_streams_to_output_logger(self, tmp_path: Path, caplog):
        with caplog.at_level(logging.INFO, logger="rose_installer.output"):
            _shell(["sh", "-c", "echo one; echo two >&2"], tmp_path)
        lines = [r.getMessage() for r in caplog.records if r.name == "rose_installer.output"]
        assert lines == ["one", "two"]

    def test_env_overrides(self, tmp_path: Path):
        receipt = _shell("echo $ROSE_TEST_VAR", tmp_path, env={"ROSE_TEST_VAR": "from-env"})
        assert receipt.output == "from-env"

    def test_runs_in_working_dir(self, tmp_path: Path):
        receipt = _shell(["pwd"], tmp_path)
        assert Path(receipt.output).resolve() == tmp_path.resolve()

    def test_missing_executable(self, tmp_path: Path):
        receipt = _shell(["definitely-not-a-command-xyz"], tmp_path)
        assert receipt.failed
        assert "Command execution error" in receipt.error

    def test_missing_command(self, tmp_path: Path):
        receipt = _shell([], tmp_path)
        assert "Missing required param" in receipt.error

    def test_missing_working_dir(self, tmp_path: Path):
        receipt = _shell(["true"], tmp_path / "gone")
        assert "Working directory does not exist" in receipt.error

    def test_timeout(self, tmp_path: Path):
        reg = AdapterRegistry()
        reg.register(ShellCommandAdapter())
        receipt = reg.execute_action(
            Action(id="slow", adapter="shell", params={"command": ["sleep", "5"], "timeout": 1}),
            working_dir=str(tmp_path),
        )
        assert receipt.error == "Command timed out after 1s"

    def test_render(self):
        assert render(["make", "-j4"]) == "make -j4"
        assert render("make install") == "make install"


# ── Git / HTTP validation ────────────────────────────────────────────


class TestGitAdapter:
    @pytest.mark.parametrize("params,message", [
        ({}, "Missing required param: 'operation'"),
        ({"operation": "push"}, "Unknown operation 'push'"),
        ({"operation": "clone"}, "'url' for clone"),
    ])
    def test_validation(self, params, message):
        ctx = ExecutionContext(action=Action(id="g", adapter="git", params=params))
        ok, error = GitAdapter().validate(ctx)
        assert not ok
        assert message in error

    def test_valid_pull(self):
        ctx = ExecutionContext(action=Action(id="g", adapter="git", params={"operation": "pull"}))
        assert GitAdapter().validate(ctx) == (True, "")


class TestHttpAdapter:
    def _run(self, params: dict) -> Receipt:
        reg = AdapterRegistry()
        reg.register(HttpAdapter(timeout=5))
        return reg.execute_action(Action(id="h", adapter="http", params=params))

    def test_fetch_file_url(self, tmp_path: Path):
        page = tmp_path / "index.html"
        page.write_text("<a href='/frs/download.php/1/x.tar.gz'>x</a>")
        receipt = self._run({"operation": "fetch", "url": page.as_uri()})
        assert receipt.ok
        assert "download.php" in receipt.output

    def test_download_file_url(self, tmp_path: Path):
        source = tmp_path / "pkg.tar.gz"
        source.write_bytes(b"\x1f\x8b" + b"0" * 1000)
        dest = tmp_path / "out" / "pkg.tar.gz"
        receipt = self._run({"operation": "download", "url": source.as_uri(), "dest": str(dest)})
        assert receipt.ok
        assert dest.read_bytes() == source.read_bytes()
        assert receipt.metadata["size_bytes"] == 1002
        assert not (tmp_path / "out" / "pkg.tar.gz.part").exists()

    def test_download_failure_leaves_nothing(self, tmp_path: Path):
        dest = tmp_path / "pkg.tar.gz"
        receipt = self._run({
            "operation": "download",
            "url": (tmp_path / "missing.tar.gz").as_uri(),
            "dest": str(dest),
        })
        assert receipt.failed
        assert "HTTP error" in receipt.error
        assert not dest.exists()
        assert not (tmp_path / "pkg.tar.gz.part").exists()

    def test_validation(self):
        receipt = self._run({"operation": "download", "url": "http://example.invalid/x"})
        assert "'dest'" in receipt.error
