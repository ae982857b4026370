"""
rose-install — CLI entrypoint.

Usage:
    rose-install [-b <boost-path>] [-g <git-repo-name>] [-t] [-u] [-s <1-6>]
    python -m rose_installer.main --help
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from rose_installer import __version__
from rose_installer.core.config.loader import ConfigError, load_config
from rose_installer.core.errors import InstallerError
from rose_installer.core.observability.logging_config import setup_logging

_EPILOG = """\b
Stages (--stage, or the interactive menu):
  1: download   2: configure   3: make
  4: make install   5: clean up   6: do all (default)

\b
Git repository names published upstream: rose, edg4x-rose
"""


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=_EPILOG,
)
@click.version_option(version=__version__, prog_name="rose-install")
@click.option("-b", "--boost", "boost", default=None, metavar="PATH",
              help="Boost install top-level directory (default: /usr).")
@click.option("-g", "--git-repo", "git_repo", default=None, metavar="NAME",
              help="Git repository name (default: rose; empty uses the tgz package).")
@click.option("-t", "--tgz", "use_tgz", is_flag=True, help="Use the tgz source package.")
@click.option("-u", "--unattended", is_flag=True, help="Unattended mode: never prompt.")
@click.option("-s", "--stage", default=None, metavar="1-6", help="Stage to run without the menu.")
@click.option("--java-home", default=None, metavar="PATH", help="JDK directory (default: $JAVA_HOME).")
@click.option("--config", "-c", "config_path", type=click.Path(exists=False), default=None,
              help="Path to rose-install.yml (default: auto-detect).")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output on the console.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
def cli(
    boost: str | None,
    git_repo: str | None,
    use_tgz: bool,
    unattended: bool,
    stage: str | None,
    java_home: str | None,
    config_path: str | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Download, configure, build, and install the latest ROSE library."""
    if debug or verbose:
        level = "DEBUG"
    else:
        level = os.environ.get("ROSE_INSTALL_LOG_LEVEL", "INFO")
    setup_logging(level=level, quiet_third_party=not debug)

    from rose_installer.core.use_cases.run import RunOptions, run_installer

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"ERROR: {e}", fg="red", err=True)
        sys.exit(e.exit_code)

    base_dir = Path(config.workspace_root) if config.workspace_root else Path.cwd()
    options = RunOptions(
        boost=boost if boost is not None else config.boost,
        git_repo=git_repo if git_repo is not None else config.git_repo,
        use_tgz=use_tgz,
        unattended=unattended,
        stage=stage,
        java_home=java_home,
        base_dir=base_dir,
    )

    try:
        run_installer(options, config)
    except InstallerError as e:
        if not e.reported:
            click.secho(f"ERROR: {e}", fg="red", err=True)
        sys.exit(e.exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
