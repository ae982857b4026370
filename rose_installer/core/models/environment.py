"""
Resolved environment — Boost and JDK locations for child processes.

Produced once at startup by the environment resolver and read-only
afterwards. Stages never touch ``os.environ``; they pass
``child_env()`` to every command they run.
"""

from __future__ import annotations

from pydantic import BaseModel


class ResolvedEnv(BaseModel):
    """Everything a stage needs to know about the host toolchain."""

    boost_root: str
    boost_libdir: str
    java_home: str
    java_libraries: str
    library_path_var: str = "LD_LIBRARY_PATH"
    library_path: str = ""

    def child_env(self) -> dict[str, str]:
        """Environment overrides for every child process."""
        return {
            "JAVA_HOME": self.java_home,
            self.library_path_var: self.library_path,
        }
