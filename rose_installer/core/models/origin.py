"""
Source origin — where the ROSE sources come from.

Chosen once per run from CLI input and never changed afterwards.
The origin decides which identity strategy applies and where the
workspace lives.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class VersionControlled(BaseModel):
    """A git checkout of one of the rose-compiler repositories."""

    kind: Literal["git"] = "git"
    repository: str = "rose"

    @property
    def workspace_name(self) -> str:
        return self.repository


class Archive(BaseModel):
    """A published source tarball (rose-0.9.*-without-EDG-*.tar.gz)."""

    kind: Literal["tgz"] = "tgz"

    @property
    def workspace_name(self) -> str:
        return "tgz"


SourceOrigin = Annotated[Union[VersionControlled, Archive], Field(discriminator="kind")]


def origin_from_flags(git_repo: str, use_tgz: bool) -> VersionControlled | Archive:
    """Pick the origin the way the command line flags describe it.

    ``-t`` wins over ``-g``; an empty repository name also means archive mode.
    """
    if use_tgz or not git_repo:
        return Archive()
    return VersionControlled(repository=git_repo)
