"""
Domain models — Pydantic types for the installer.

    from rose_installer.core.models import Action, Receipt, ResolvedEnv, Stage
"""

from rose_installer.core.models.action import Action, Receipt
from rose_installer.core.models.config import InstallerConfig
from rose_installer.core.models.environment import ResolvedEnv
from rose_installer.core.models.origin import Archive, SourceOrigin, VersionControlled
from rose_installer.core.models.stage import MENU, RUN_ALL, Stage, StageOutcome

__all__ = [
    "MENU",
    "RUN_ALL",
    # action.py
    "Action",
    # origin.py
    "Archive",
    # config.py
    "InstallerConfig",
    "Receipt",
    # environment.py
    "ResolvedEnv",
    "SourceOrigin",
    # stage.py
    "Stage",
    "StageOutcome",
    "VersionControlled",
]
