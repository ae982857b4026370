"""
Environment resolver — Boost and JDK discovery.

Validates the Boost install, finds a JDK (asking the operator on
Linux when JAVA_HOME is unset), and derives the native library search
path that configure, make and the installed ROSE tools need.

Nothing here writes to ``os.environ``; the result is a ``ResolvedEnv``
whose ``child_env()`` is passed to every command.
"""

from __future__ import annotations

import glob
import logging
import os
import shutil
import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path

from rose_installer.core.errors import MissingDependency
from rose_installer.core.models.environment import ResolvedEnv
from rose_installer.core.services.confirmation import ConfirmationPolicy

logger = logging.getLogger(__name__)

# Presence of this library decides which Boost lib dir is used
BOOST_PROBE_LIB = "libboost_program_options.so"
BOOST_LIB_DIRS = ("lib64", "lib")

DARWIN_JAVA_HOME = "/System/Library/Frameworks/JavaVM.framework/Versions/CurrentJDK"

# Used when `locate` is not installed
KNOWN_JVM_GLOBS = (
    "/usr/lib/jvm/*/jre/lib/*/server/libjvm.so",
    "/usr/lib/jvm/*/lib/server/libjvm.so",
    "/usr/java/*/jre/lib/*/server/libjvm.so",
    "/usr/java/*/lib/server/libjvm.so",
)

# GCJ ships a libjvm.so that ROSE cannot use
_SKIP_MARKERS = ("gcc", "gcj")


def platform_family(platform: str | None = None) -> str:
    """'linux', 'darwin', or the raw platform string."""
    name = platform or sys.platform
    if name.startswith("linux"):
        return "linux"
    if name.startswith("darwin"):
        return "darwin"
    return name


def library_path_var(platform: str | None = None) -> str:
    return "DYLD_LIBRARY_PATH" if platform_family(platform) == "darwin" else "LD_LIBRARY_PATH"


# ── Boost ───────────────────────────────────────────────────────

def resolve_boost(boost_path: str) -> tuple[str, str]:
    """Validate a Boost install and pick its library directory.

    Returns:
        (boost_root, boost_libdir), ``lib64`` preferred over ``lib``.

    Raises:
        MissingDependency: naming the check that failed.
    """
    root = Path(boost_path)
    if not root.is_dir():
        raise MissingDependency(f"Boost directory not found ({boost_path})")
    if not (root / "include").is_dir():
        raise MissingDependency(f"Boost header files not found ({root / 'include'})")

    for libdir in BOOST_LIB_DIRS:
        if (root / libdir / BOOST_PROBE_LIB).exists():
            logger.info("Using Boost at %s", root)
            return str(root), str(root / libdir)

    raise MissingDependency(f"Boost library not found ({BOOST_PROBE_LIB} under {root})")


# ── JDK ─────────────────────────────────────────────────────────

def java_home_from_libjvm(path: str) -> str:
    """JDK home for a libjvm.so path.

    ``/usr/lib/jvm/java-8/jre/lib/amd64/server/libjvm.so`` → ``/usr/lib/jvm/java-8``
    ``/usr/lib/jvm/java-17/lib/server/libjvm.so`` → ``/usr/lib/jvm/java-17``
    """
    if "/jre" in path:
        return path.rpartition("/jre")[0]
    if "/lib/" in path:
        return path.rpartition("/lib/")[0]
    return str(Path(path).parent)


def _locate_libjvm() -> list[str] | None:
    """Ask `locate` for libjvm.so; None when locate is unavailable."""
    if not shutil.which("locate"):
        return None
    try:
        r = subprocess.run(
            ["locate", "libjvm.so"],
            capture_output=True, text=True, timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("locate failed: %s", e)
        return None
    return [line.strip() for line in r.stdout.splitlines() if line.strip()]


def jdk_candidates(platform: str | None = None) -> list[str]:
    """libjvm.so paths worth offering, in discovery order."""
    if platform_family(platform) != "linux":
        return []

    found = _locate_libjvm()
    if found is None:
        found = []
        for pattern in KNOWN_JVM_GLOBS:
            found.extend(sorted(glob.glob(pattern)))

    candidates: list[str] = []
    for path in found:
        if any(marker in path for marker in _SKIP_MARKERS):
            continue
        if path not in candidates:
            candidates.append(path)
    return candidates


def resolve_java_home(
    override: str | None,
    policy: ConfirmationPolicy,
    *,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Find the JDK: explicit override, then JAVA_HOME, then discovery.

    Raises:
        MissingDependency: If no JDK was found or none was accepted.
    """
    environ = os.environ if environ is None else environ
    java_home = override or environ.get("JAVA_HOME", "")

    if not java_home:
        family = platform_family(platform)
        if family == "darwin":
            java_home = DARWIN_JAVA_HOME
        elif family == "linux":
            for candidate in jdk_candidates(platform):
                if policy.confirm(f"Using {candidate}?", default=True):
                    java_home = java_home_from_libjvm(candidate)
                    break

    if not java_home:
        raise MissingDependency("JDK not found")
    if not Path(java_home).is_dir():
        raise MissingDependency(f"JDK directory not found ({java_home})")

    logger.info("JAVA_HOME is set to %s", java_home)
    return java_home


def find_jvm_dir(java_home: str) -> str:
    """Directory holding the first ``libjvm.*`` under the JDK.

    The walk is sorted so the choice is stable across runs.
    """
    for dirpath, dirnames, filenames in os.walk(java_home):
        dirnames.sort()
        for name in sorted(filenames):
            if name.startswith("libjvm."):
                return dirpath
    raise MissingDependency(f"No libjvm found under JAVA_HOME ({java_home})")


def detect_java_libraries(java_home: str, platform: str | None = None) -> str:
    """Search-path entries for the JVM's native libraries."""
    jvm_dir = find_jvm_dir(java_home)
    if platform_family(platform) == "darwin":
        return jvm_dir
    return f"{java_home}/jre/lib:{jvm_dir}"


# ── Entry point ─────────────────────────────────────────────────

def resolve(
    boost_path: str,
    java_home_override: str | None,
    policy: ConfirmationPolicy,
    *,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ResolvedEnv:
    """Resolve Boost, the JDK and the library search path.

    Raises:
        MissingDependency: If any dependency is missing or invalid.
    """
    environ = os.environ if environ is None else environ

    boost_root, boost_libdir = resolve_boost(boost_path)
    java_home = resolve_java_home(
        java_home_override, policy, platform=platform, environ=environ,
    )
    java_libraries = detect_java_libraries(java_home, platform)

    var = library_path_var(platform)
    parts = [java_libraries, f"{boost_root}/lib"]
    existing = environ.get(var, "")
    if existing:
        parts.append(existing)
    library_path = ":".join(parts)
    logger.info("export %s=%s", var, library_path)

    return ResolvedEnv(
        boost_root=boost_root,
        boost_libdir=boost_libdir,
        java_home=java_home,
        java_libraries=java_libraries,
        library_path_var=var,
        library_path=library_path,
    )
