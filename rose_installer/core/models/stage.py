"""
Stage model — the pipeline steps and the menu that selects them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Stage(str, Enum):
    """One discrete pipeline step."""

    ACQUIRE = "acquire"
    CONFIGURE = "configure"
    BUILD = "build"
    INSTALL = "install"
    RETENTION = "retention"


# Menu number → stages it runs, in order.
MENU: dict[str, tuple[Stage, ...]] = {
    "1": (Stage.ACQUIRE,),
    "2": (Stage.CONFIGURE,),
    "3": (Stage.BUILD,),
    "4": (Stage.INSTALL,),
    "5": (Stage.RETENTION,),
    "6": (Stage.ACQUIRE, Stage.CONFIGURE, Stage.BUILD, Stage.INSTALL, Stage.RETENTION),
}

MENU_LABELS: dict[str, str] = {
    "1": "download",
    "2": "configure",
    "3": "make",
    "4": "make install",
    "5": "clean up",
    "6": "do all",
}

RUN_ALL = "6"


@dataclass
class StageOutcome:
    """What happened when a stage ran."""

    stage: Stage
    status: str = "ok"          # ok | failed
    message: str = ""
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "status": self.status,
            "message": self.message,
            "paths": dict(self.paths),
        }
