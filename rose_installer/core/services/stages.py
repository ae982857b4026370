"""
Stage runner — acquire, configure, build, install and retention.

Each stage asks the layout for its paths at the moment it runs and
passes the resolved environment to every command. Stages raise the
matching ``InstallerError`` on fatal failure; a failed build is only
fatal when ``stop_on_build_failure`` is set.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import tarfile
from pathlib import Path

from rose_installer.adapters.registry import AdapterRegistry
from rose_installer.core.errors import (
    AcquireFailed,
    BuildReported,
    ConfigureFailed,
    InstallerError,
    InstallFailed,
    NoSource,
)
from rose_installer.core.models.action import Action, Receipt
from rose_installer.core.models.config import InstallerConfig
from rose_installer.core.models.environment import ResolvedEnv
from rose_installer.core.models.origin import VersionControlled
from rose_installer.core.models.stage import Stage, StageOutcome
from rose_installer.core.services.archive import (
    archive_file_name,
    latest_archive_link,
    unpack_archive,
)
from rose_installer.core.services.confirmation import ConfirmationPolicy
from rose_installer.core.services.identity import identity_from_archive_name
from rose_installer.core.services.layout import LayoutPlanner
from rose_installer.core.services.retention import run_retention

logger = logging.getLogger(__name__)


def detect_num_cores() -> int:
    logger.info("Detecting number of cores...")
    return os.cpu_count() or 1


def build_jobs(cores: int | None = None) -> int:
    """Half the logical cores for ``make -j``, never less than one."""
    if cores is None:
        cores = detect_num_cores()
    return max(1, cores // 2)


def update_latest_link(link: Path, target: Path) -> None:
    """Point ``link`` at ``target``.

    A temporary link is renamed over the old one, so readers see
    either the old or the new target.
    """
    if link.exists() and not link.is_symlink():
        raise InstallFailed(f"{link} exists and is not a symlink")
    tmp = link.with_name(f".{link.name}.tmp")
    tmp.unlink(missing_ok=True)
    tmp.symlink_to(target)
    os.replace(tmp, link)


def _recreate(path: Path, what: str) -> None:
    if path.exists():
        logger.info("Removing previously used %s: %s", what, path)
        shutil.rmtree(path)
    path.mkdir(parents=True)


class StageRunner:
    """Runs single pipeline stages against the current workspace state."""

    def __init__(
        self,
        layout: LayoutPlanner,
        env: ResolvedEnv,
        config: InstallerConfig,
        policy: ConfirmationPolicy,
        registry: AdapterRegistry,
    ):
        self.layout = layout
        self.env = env
        self.config = config
        self.policy = policy
        self.registry = registry

    def run(self, stage: Stage) -> StageOutcome:
        handlers = {
            Stage.ACQUIRE: self.acquire,
            Stage.CONFIGURE: self.configure,
            Stage.BUILD: self.build,
            Stage.INSTALL: self.install,
            Stage.RETENTION: self.retention,
        }
        return handlers[stage]()

    # ── Helpers ─────────────────────────────────────────────────

    def _execute(
        self,
        action: Action,
        cwd: Path,
        error: type[InstallerError],
        message: str,
    ) -> Receipt:
        receipt = self.registry.execute_action(
            action, working_dir=str(cwd), env=self.env.child_env(),
        )
        if receipt.failed:
            raise error(f"{message}: {receipt.error}")
        return receipt

    def _shell(self, action_id: str, stage: Stage, command: list[str]) -> Action:
        return Action(id=action_id, adapter="shell", stage=stage.value, params={"command": command})

    # ── Acquire ─────────────────────────────────────────────────

    def acquire(self) -> StageOutcome:
        if isinstance(self.layout.origin, VersionControlled):
            self._acquire_git(self.layout.origin)
        else:
            self._acquire_archive()

        identity = self.layout.identity()
        logger.info("Current source: %s", identity)
        return StageOutcome(
            stage=Stage.ACQUIRE,
            message=identity,
            paths={"source": str(self.layout.source_dir())},
        )

    def _acquire_git(self, origin: VersionControlled) -> None:
        src = self.layout.src_root
        src.mkdir(parents=True, exist_ok=True)

        if not (src / ".git").exists():
            params = {"operation": "clone", "url": self.config.git_url(origin.repository), "dest": "."}
            self._execute(
                Action(id="git-clone", adapter="git", stage="acquire", params=params),
                src, AcquireFailed, "git clone failed",
            )
        else:
            logger.info("git pull...")
            self._execute(
                Action(id="git-pull", adapter="git", stage="acquire", params={"operation": "pull"}),
                src, AcquireFailed, "git pull failed",
            )

        self._execute(
            self._shell("bootstrap", Stage.ACQUIRE, shlex.split(self.config.bootstrap_command)),
            src, AcquireFailed, "bootstrap failed",
        )

    def _acquire_archive(self) -> None:
        site = self.config.archive_site.rstrip("/")
        index_url = site + self.config.archive_index_path
        logger.info("Detecting the latest ROSE source package...")

        index = self._execute(
            Action(id="archive-index", adapter="http", stage="acquire",
                   params={"operation": "fetch", "url": index_url}),
            self.layout.src_root, AcquireFailed, "cannot read the release index",
        )
        link = latest_archive_link(index.output, self.config.archive_pattern)
        if link is None:
            raise AcquireFailed(f"No ROSE source package listed on {index_url}")

        file_name = archive_file_name(link)
        logger.info("Latest ROSE: %s", file_name)
        archive = self.layout.src_root / file_name

        if archive.is_file():
            logger.info("The latest source is already downloaded")
            # Make it the newest tarball so the identity follows this acquire
            archive.touch()
        else:
            url = site + link
            logger.info("Downloading %s...", url)
            self._execute(
                Action(id="archive-download", adapter="http", stage="acquire",
                       params={"operation": "download", "url": url, "dest": str(archive)}),
                self.layout.src_root, AcquireFailed, "download failed",
            )
            logger.info("Download finished.")

        src_dir = self.layout.src_root / identity_from_archive_name(file_name)
        if src_dir.is_dir():
            logger.info("The source is already unpacked.")
            return

        logger.info("Unpacking the source...")
        try:
            unpack_archive(archive, self.layout.src_root)
        except (tarfile.TarError, OSError) as e:
            raise AcquireFailed(f"cannot unpack {archive}: {e}") from e
        if not src_dir.is_dir():
            raise AcquireFailed(f"{archive.name} did not unpack to {src_dir.name}")

    # ── Configure ───────────────────────────────────────────────

    def configure(self) -> StageOutcome:
        src_dir = self.layout.source_dir()
        install_prefix = self.layout.install_prefix()
        build_dir = self.layout.build_dir()

        configure_script = src_dir / "configure"
        if not configure_script.is_file():
            raise NoSource(f"No configure script in {src_dir}; run the download stage first")

        logger.info("Configuring ROSE at %s", src_dir)
        _recreate(build_dir, "build dir")

        command = [
            str(configure_script),
            f"--prefix={install_prefix}",
            "--with-CXX_DEBUG=-g",
            f"--with-boost={self.env.boost_root}",
            f"--with-boost-libdir={self.env.boost_libdir}",
            *self.config.configure_args,
        ]
        logger.info("Executing configure as: %s...", shlex.join(command))
        self.policy.pause("Type Enter to proceed: ")

        self._execute(
            self._shell("configure", Stage.CONFIGURE, command),
            build_dir, ConfigureFailed, "configure failed",
        )
        logger.info("Configure finished; select make to build ROSE")
        return StageOutcome(stage=Stage.CONFIGURE, paths={"build": str(build_dir)})

    # ── Build ───────────────────────────────────────────────────

    def build(self) -> StageOutcome:
        build_dir = self.layout.build_dir()
        if not build_dir.is_dir():
            raise NoSource(f"Build directory {build_dir} not found; run configure first")

        jobs = build_jobs()
        logger.info("Building ROSE at %s by make -j%d", build_dir, jobs)

        receipt = self.registry.execute_action(
            self._shell("make", Stage.BUILD, ["make", f"-j{jobs}"]),
            working_dir=str(build_dir),
            env=self.env.child_env(),
        )
        if receipt.failed:
            message = f"make failed: {receipt.error}"
            if self.config.stop_on_build_failure:
                raise BuildReported(message)
            logger.warning("%s (continuing)", message)
            return StageOutcome(
                stage=Stage.BUILD, status="failed", message=message,
                paths={"build": str(build_dir)},
            )

        logger.info("Build finished; select make install to install ROSE")
        return StageOutcome(stage=Stage.BUILD, paths={"build": str(build_dir)})

    # ── Install ─────────────────────────────────────────────────

    def install(self) -> StageOutcome:
        install_prefix = self.layout.install_prefix()
        build_dir = self.layout.build_dir()
        if not build_dir.is_dir():
            raise NoSource(f"Build directory {build_dir} not found; run configure and make first")

        logger.info("Installing ROSE at %s to %s", build_dir, install_prefix)
        _recreate(install_prefix, "install dir")

        self._execute(
            self._shell("make-install", Stage.INSTALL, ["make", "install"]),
            build_dir, InstallFailed, "make install failed",
        )
        update_latest_link(self.layout.latest_link, install_prefix)
        logger.info("ROSE is installed at %s", install_prefix)
        return StageOutcome(
            stage=Stage.INSTALL,
            paths={"install": str(install_prefix), "latest": str(self.layout.latest_link)},
        )

    # ── Retention ───────────────────────────────────────────────

    def retention(self) -> StageOutcome:
        removed = run_retention(self.layout)
        count = sum(len(v) for v in removed.values())
        return StageOutcome(
            stage=Stage.RETENTION,
            message=f"removed {count} old entries",
            paths={k: ", ".join(v) for k, v in removed.items() if v},
        )
