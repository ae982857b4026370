"""
Installer configuration — optional rose-install.yml.

Every field has a default matching the upstream ROSE release layout,
so running without a config file is the normal case.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_ARCHIVE_PATTERN = r"/frs/download.php/[0-9]+/rose-0\.9\.5a-without-EDG-[0-9]+\.tar\.gz"


class InstallerConfig(BaseModel):
    """Settings that shape where sources come from and how they build."""

    workspace_root: str | None = None   # parent of <repo>/ or tgz/ (default: cwd)
    boost: str = "/usr"
    git_repo: str = "rose"

    git_base_url: str = "https://github.com/rose-compiler"
    bootstrap_command: str = "./build"

    archive_site: str = "https://outreach.scidac.gov"
    archive_index_path: str = "/frs/?group_id=24"
    archive_pattern: str = DEFAULT_ARCHIVE_PATTERN
    http_timeout: int = 60

    configure_args: list[str] = Field(default_factory=list)
    stop_on_build_failure: bool = False

    def git_url(self, repository: str) -> str:
        return f"{self.git_base_url.rstrip('/')}/{repository}.git"
