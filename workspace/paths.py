"""
Conversion between on-disk paths and thread-facing virtual paths.

A virtual path is rooted at '/' and relative to exactly one workspace root.
Every disk-touching operation goes through to_disk(), which refuses any
path that resolves outside the root (including via symlinks).
"""
import logging
import os

logger = logging.getLogger(__name__)


class WorkspaceError(Exception):
    """Base exception for workspace path errors."""
    pass


class InvalidPathError(WorkspaceError):
    """Raised for a malformed virtual path."""
    pass


class PathEscapeError(InvalidPathError):
    """Raised when a virtual path would resolve outside the workspace root."""
    pass


def _canonical(path: str) -> str:
    return os.path.normcase(os.path.realpath(path))


def is_within(root: str, candidate: str) -> bool:
    """True if candidate equals root or is a descendant of it (canonical forms)."""
    canonical_root = _canonical(root)
    canonical_candidate = _canonical(candidate)
    if canonical_candidate == canonical_root:
        return True
    prefix = canonical_root if canonical_root.endswith(os.sep) else canonical_root + os.sep
    return canonical_candidate.startswith(prefix)


def to_disk(root: str, virtual_path: str) -> str:
    """Resolve a virtual path against a workspace root.

    Returns:
        The absolute disk path (root joined with the virtual path).

    Raises:
        InvalidPathError: If the virtual path is malformed.
        PathEscapeError: If it contains '..' segments or escapes the root.
    """
    if not isinstance(virtual_path, str):
        raise InvalidPathError(f"Virtual path must be a string, got {type(virtual_path).__name__}")
    if "\x00" in virtual_path:
        raise InvalidPathError("Virtual path contains a NUL byte")

    segments = virtual_path.replace("\\", "/").split("/")
    if ".." in segments:
        logger.warning("Rejected traversal in virtual path %r", virtual_path)
        raise PathEscapeError(f"Path traversal is not allowed: {virtual_path}")

    relative = virtual_path[1:] if virtual_path.startswith("/") else virtual_path
    root_abs = os.path.abspath(root)
    candidate = os.path.join(root_abs, relative)

    if not is_within(root_abs, candidate):
        logger.warning("Rejected virtual path %r outside workspace %s", virtual_path, root_abs)
        raise PathEscapeError(f"Access denied: path outside workspace: {virtual_path}")
    return os.path.normpath(candidate)


def to_virtual(root: str, absolute_path: str) -> str:
    """Map a disk path inside root to its virtual form ('/' for the root itself).

    Raises:
        PathEscapeError: If the path is not inside root.
    """
    root_abs = os.path.abspath(root)
    path_abs = os.path.abspath(absolute_path)
    relative = os.path.relpath(path_abs, root_abs)
    if relative == os.curdir:
        return "/"
    if relative == os.pardir or relative.startswith(os.pardir + os.sep) or os.path.isabs(relative):
        raise PathEscapeError(f"{absolute_path} is outside workspace {root}")
    return "/" + relative.replace(os.sep, "/")
