"""
Installer errors — the failure taxonomy for the pipeline.

Fatal errors abort the whole run; ``main.py`` turns them into a red
message and ``exit_code``. ``BuildReported`` is only raised when the
configuration asks for build failures to be fatal.
"""

from __future__ import annotations


class InstallerError(Exception):
    """Base class for every error the pipeline reports to the user."""

    exit_code = 1
    # Set once the error has been written to the session log
    reported = False


class MissingDependency(InstallerError):
    """Boost or the JDK could not be found or is incomplete."""


class NoSource(InstallerError):
    """A stage needs a source tree that does not exist yet."""


class AcquireFailed(InstallerError):
    """Clone, pull, bootstrap, index lookup, download or unpack failed."""


class ConfigureFailed(InstallerError):
    """The package's configure script exited non-zero."""


class BuildReported(InstallerError):
    """``make`` exited non-zero."""


class InstallFailed(InstallerError):
    """``make install`` exited non-zero."""


class InvalidSelection(InstallerError):
    """The stage menu choice is not one of 1-6."""

    exit_code = 2
