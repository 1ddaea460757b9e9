"""
Safe file reads inside a workspace root.

Both readers return result objects instead of raising, so the UI layer can
render errors directly.
"""
import base64
import logging
import os
import stat as stat_module
from datetime import datetime, timezone
from typing import Optional

from models import BinaryFileResult, TextFileResult, WorkspaceErrorCode
from .paths import InvalidPathError, PathEscapeError, to_disk

logger = logging.getLogger(__name__)


def _resolve_file(root: Optional[str], virtual_path: str, result_cls):
    """Resolve and stat a readable file.

    Returns:
        (full_path, stat_result, None) on success, or (None, None, failure).
    """
    if not root:
        return None, None, result_cls.failure(WorkspaceErrorCode.NO_WORKSPACE)
    try:
        full_path = to_disk(root, virtual_path)
    except PathEscapeError:
        return None, None, result_cls.failure(WorkspaceErrorCode.ACCESS_DENIED)
    except InvalidPathError as e:
        return None, None, result_cls.failure(WorkspaceErrorCode.INVALID_PATH, str(e))

    try:
        st = os.stat(full_path)
    except OSError as e:
        return None, None, result_cls.failure(WorkspaceErrorCode.IO_ERROR, str(e))
    if stat_module.S_ISDIR(st.st_mode):
        return None, None, result_cls.failure(WorkspaceErrorCode.IS_DIRECTORY)
    return full_path, st, None


def _mtime(st: os.stat_result) -> datetime:
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)


def read_text(root: Optional[str], virtual_path: str) -> TextFileResult:
    """Read a workspace file as UTF-8 text (undecodable bytes are replaced)."""
    full_path, st, failure = _resolve_file(root, virtual_path, TextFileResult)
    if failure is not None:
        return failure
    try:
        with open(full_path, "r", encoding="utf-8", errors="replace") as f:
            content = f.read()
    except OSError as e:
        logger.warning("Failed to read %s: %s", full_path, e)
        return TextFileResult.failure(WorkspaceErrorCode.IO_ERROR, str(e))
    return TextFileResult(success=True, content=content, size=st.st_size, modified_at=_mtime(st))


def read_binary(root: Optional[str], virtual_path: str) -> BinaryFileResult:
    """Read a workspace file (images, PDFs, ...) and return it base64-encoded."""
    full_path, st, failure = _resolve_file(root, virtual_path, BinaryFileResult)
    if failure is not None:
        return failure
    try:
        with open(full_path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.warning("Failed to read %s: %s", full_path, e)
        return BinaryFileResult.failure(WorkspaceErrorCode.IO_ERROR, str(e))
    return BinaryFileResult(
        success=True,
        content_base64=base64.b64encode(data).decode("ascii"),
        size=st.st_size,
        modified_at=_mtime(st),
    )
