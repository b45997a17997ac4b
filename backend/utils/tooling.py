"""Startup helpers for locating the external tools the pipeline launches."""

import logging
import os
import shutil
import sys
from typing import Optional

logger = logging.getLogger(__name__)


def prepend_executable_dir_to_path(executable: Optional[str] = None) -> Optional[str]:
    """
    Put the directory of the running executable at the front of PATH.

    The zoekt tools are usually installed next to the server, so this keeps
    them reachable without extra configuration.

    Returns:
        The directory that was prepended, or None if nothing changed.
    """
    executable = executable or sys.executable
    if not executable:
        return None

    # Not resolved: a venv interpreter is a symlink to the base install, but
    # the console scripts and tools live next to the link.
    try:
        directory = os.path.dirname(os.path.abspath(executable))
    except OSError:
        return None

    current = os.environ.get("PATH", "")
    entries = current.split(os.pathsep) if current else []
    if entries and entries[0] == directory:
        return None

    os.environ["PATH"] = os.pathsep.join([directory, *entries])
    return directory


def locate_git() -> str:
    """
    Find the git executable and register it with GitPython.

    GIT_PYTHON_GIT_EXECUTABLE wins over PATH lookup.

    Raises:
        RuntimeError: If no git executable can be found.
    """
    git_path = os.environ.get("GIT_PYTHON_GIT_EXECUTABLE") or shutil.which("git")
    if not git_path:
        raise RuntimeError(
            "Git executable not found. Install git or set GIT_PYTHON_GIT_EXECUTABLE "
            "to the path of the git binary"
        )

    os.environ["GIT_PYTHON_GIT_EXECUTABLE"] = git_path
    import git

    git.refresh(path=git_path)
    logger.info("Using git executable %s", git_path)
    return git_path
