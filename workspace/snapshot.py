"""Recursive listing of a workspace root as virtual file entries."""
import logging
import os
from datetime import datetime, timezone

import constants as C
from models import VirtualFileEntry

logger = logging.getLogger(__name__)


def is_ignored_name(name: str) -> bool:
    """Hidden entries and dependency-cache directories are never listed."""
    return name.startswith(".") or name in C.WORKSPACE_NOISE_DIRS


def snapshot(root: str) -> list[VirtualFileEntry]:
    """Walk root depth-first and return every visible file and directory.

    A directory entry always precedes its descendants; sibling order is
    whatever the filesystem returns. Symlinks are listed as files and never
    followed into.

    Raises:
        OSError: If the root or any directory is unreadable, or any stat fails.
    """
    entries: list[VirtualFileEntry] = []
    _walk(os.path.abspath(root), "", entries)
    logger.debug("Snapshot of %s: %d entries", root, len(entries))
    return entries


def _walk(dir_path: str, relative: str, entries: list[VirtualFileEntry]) -> None:
    with os.scandir(dir_path) as it:
        children = list(it)

    for child in children:
        if is_ignored_name(child.name):
            continue
        rel_path = f"{relative}/{child.name}" if relative else child.name

        if child.is_dir(follow_symlinks=False):
            entries.append(VirtualFileEntry(virtual_path="/" + rel_path, is_directory=True))
            _walk(child.path, rel_path, entries)
        else:
            stat = os.stat(child.path)
            entries.append(
                VirtualFileEntry(
                    virtual_path="/" + rel_path,
                    is_directory=False,
                    size=stat.st_size,
                    modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
