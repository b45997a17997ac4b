"""On-disk working directory management."""

import logging
import os
import shutil
from typing import Iterable

logger = logging.getLogger(__name__)


def ensure_directories(paths: Iterable[str]) -> None:
    """
    Create each directory (and its parents) if it is missing.

    The server cannot work without its data directories, so a failure here
    is logged and terminates the process.

    Raises:
        SystemExit: If a directory cannot be created.
    """
    for path in paths:
        if os.path.exists(path):
            continue

        try:
            os.makedirs(path, mode=0o755, exist_ok=True)
        except OSError as exc:
            logger.critical("Failed to create directory %s: %s", path, exc)
            raise SystemExit(1) from exc
        logger.info("Created directory %s", path)


def empty_directory(path: str) -> None:
    """
    Remove every immediate child of ``path`` but keep ``path`` itself.

    Subdirectories are removed recursively; symlinks are unlinked, not
    followed. Children removed before a failure stay removed.

    Raises:
        OSError: If the directory cannot be listed or a child cannot be removed.
    """
    with os.scandir(path) as it:
        entries = list(it)

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                shutil.rmtree(entry.path)
            else:
                os.unlink(entry.path)
        except FileNotFoundError:
            # Already gone.
            continue
