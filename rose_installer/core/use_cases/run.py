"""
Run use case — the installer's top-level orchestrator.

Picks the menu entry, prepares the workspace, opens the session log,
resolves the environment and runs the selected stages in order. The
full vertical slice from command line to installed ROSE.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from rose_installer.adapters.registry import AdapterRegistry, default_registry
from rose_installer.core.errors import InstallerError, InvalidSelection
from rose_installer.core.models.config import InstallerConfig
from rose_installer.core.models.origin import origin_from_flags
from rose_installer.core.models.stage import MENU, MENU_LABELS, RUN_ALL, Stage, StageOutcome
from rose_installer.core.observability.logging_config import session_log
from rose_installer.core.services.confirmation import ConfirmationPolicy, policy_for
from rose_installer.core.services.environment import resolve
from rose_installer.core.services.layout import LayoutPlanner
from rose_installer.core.services.stages import StageRunner

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Command line choices, already merged with the config file."""

    boost: str = "/usr"
    git_repo: str = "rose"
    use_tgz: bool = False
    unattended: bool = False
    stage: str | None = None
    java_home: str | None = None
    base_dir: Path = field(default_factory=Path.cwd)


@dataclass
class RunResult:
    """Result of one installer run."""

    selection: str = ""
    workspace: Path | None = None
    log_path: Path | None = None
    outcomes: list[StageOutcome] = field(default_factory=list)

    @property
    def build_failed(self) -> bool:
        return any(o.stage is Stage.BUILD and not o.ok for o in self.outcomes)

    def to_dict(self) -> dict:
        return {
            "selection": self.selection,
            "workspace": str(self.workspace) if self.workspace else None,
            "log": str(self.log_path) if self.log_path else None,
            "stages": [o.to_dict() for o in self.outcomes],
        }


def parse_selection(raw: str | None) -> tuple[Stage, ...]:
    """Stages for a menu answer; empty means run everything.

    Raises:
        InvalidSelection: If the answer is not 1-6.
    """
    key = (raw or "").strip() or RUN_ALL
    if key not in MENU:
        raise InvalidSelection(f'Invalid input "{raw}"')
    return MENU[key]


def choose_selection(stage_flag: str | None, policy: ConfirmationPolicy) -> str:
    """Menu answer from ``--stage``, the prompt, or the run-all default."""
    if stage_flag is not None:
        return stage_flag.strip()
    if not policy.interactive:
        return RUN_ALL

    logger.info("Commands")
    for key, label in MENU_LABELS.items():
        logger.info("%s: %s", key, label)
    return policy.choose(f"What to do? [1-{len(MENU)}] (default: {RUN_ALL})", default=RUN_ALL)


def run_stages(runner: StageRunner, stages: tuple[Stage, ...]) -> list[StageOutcome]:
    """Run ``stages`` in order; the first fatal error propagates."""
    outcomes: list[StageOutcome] = []
    for stage in stages:
        logger.info("── %s ──", stage.value)
        outcomes.append(runner.run(stage))
    return outcomes


def run_installer(
    options: RunOptions,
    config: InstallerConfig | None = None,
    *,
    registry: AdapterRegistry | None = None,
    policy: ConfirmationPolicy | None = None,
    platform: str | None = None,
    environ: dict[str, str] | None = None,
    started: datetime | None = None,
) -> RunResult:
    """Run the installer end to end.

    Args:
        options: Command line choices.
        config: Installer configuration (defaults when None).
        registry: Adapter registry; the real shell/git/http adapters when None.
        policy: Confirmation policy; derived from ``options.unattended`` when None.
        platform: Platform override for environment discovery.
        environ: Environment override for environment discovery.
        started: Session start time, names the log file.

    Returns:
        RunResult describing every stage that ran.

    Raises:
        InvalidSelection: Before anything on disk is touched.
        InstallerError: On the first fatal failure (logged to the session).
    """
    config = config or InstallerConfig()
    policy = policy or policy_for(options.unattended)
    registry = registry or default_registry(config.http_timeout)

    selection = choose_selection(options.stage, policy)
    stages = parse_selection(selection)

    origin = origin_from_flags(options.git_repo, options.use_tgz)
    layout = LayoutPlanner.for_origin(options.base_dir, origin, registry)
    layout.ensure()

    result = RunResult(selection=selection.strip() or RUN_ALL, workspace=layout.root)
    with session_log(layout.logs_dir, started) as log_path:
        result.log_path = log_path
        logger.info("Workspace: %s", layout.root)
        logger.info("Selected %s: %s", result.selection, MENU_LABELS[result.selection])
        for name, status in registry.adapter_status().items():
            if not status["available"]:
                logger.warning("Tool for the %s adapter was not found on this host", name)
        try:
            env = resolve(
                options.boost, options.java_home, policy,
                platform=platform, environ=environ,
            )
            runner = StageRunner(layout, env, config, policy, registry)
            result.outcomes = run_stages(runner, stages)
        except InstallerError as e:
            logger.error("ERROR: %s", e)
            e.reported = True
            raise

        if result.build_failed:
            logger.warning("make reported a failure; see %s", log_path)
        logger.info("Finished successfully.")
        logger.debug("Run summary: %s", result.to_dict())

    return result
