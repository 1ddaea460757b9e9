"""
Workspace binding, snapshots, safe reads and change watching.
"""
from .binding import WorkspaceBinding
from .paths import InvalidPathError, PathEscapeError, WorkspaceError, is_within, to_disk, to_virtual
from .reader import read_binary, read_text
from .snapshot import is_ignored_name, snapshot
from .watcher import WorkspaceFilter, WorkspaceWatcher

__all__ = [
    "WorkspaceBinding",
    "InvalidPathError",
    "PathEscapeError",
    "WorkspaceError",
    "is_within",
    "to_disk",
    "to_virtual",
    "read_binary",
    "read_text",
    "is_ignored_name",
    "snapshot",
    "WorkspaceFilter",
    "WorkspaceWatcher",
]
