"""
Data models for workspace snapshots and file reads.

Results crossing the UI boundary never raise: they carry `success` plus
either a payload or an error code and message.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class WorkspaceErrorCode(Enum):
    """Error taxonomy reported to the UI layer."""
    NO_WORKSPACE = "NoWorkspace"
    ACCESS_DENIED = "AccessDenied"
    IS_DIRECTORY = "IsDirectory"
    IO_ERROR = "IOError"
    INVALID_PATH = "InvalidPath"


ERROR_MESSAGES = {
    WorkspaceErrorCode.NO_WORKSPACE: "No workspace folder linked",
    WorkspaceErrorCode.ACCESS_DENIED: "Access denied: path outside workspace",
    WorkspaceErrorCode.IS_DIRECTORY: "Cannot read directory as file",
    WorkspaceErrorCode.INVALID_PATH: "Invalid virtual path",
}


@dataclass(frozen=True)
class VirtualFileEntry:
    """A file or directory inside a workspace, addressed by virtual path."""
    virtual_path: str  # Always starts with '/', never contains '..'
    is_directory: bool
    size: Optional[int] = None  # Files only
    modified_at: Optional[datetime] = None  # Files only

    def to_dict(self) -> dict:
        d = {"path": self.virtual_path, "is_dir": self.is_directory}
        if not self.is_directory:
            d["size"] = self.size
            d["modified_at"] = self.modified_at.isoformat() if self.modified_at else None
        return d


@dataclass
class WorkspaceResult:
    """Base result: success flag plus optional error."""
    success: bool
    error: Optional[str] = None
    error_code: Optional[WorkspaceErrorCode] = None

    @classmethod
    def failure(cls, code: WorkspaceErrorCode, message: Optional[str] = None, **kwargs):
        return cls(
            success=False,
            error=message or ERROR_MESSAGES.get(code, code.value),
            error_code=code,
            **kwargs,
        )

    def to_dict(self) -> dict:
        d: dict = {"success": self.success}
        if not self.success:
            d["error"] = self.error
            d["error_code"] = self.error_code.value if self.error_code else None
        return d


@dataclass
class SnapshotResult(WorkspaceResult):
    files: list[VirtualFileEntry] = field(default_factory=list)
    workspace_path: Optional[str] = None

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["files"] = [entry.to_dict() for entry in self.files]
        if self.success:
            d["workspacePath"] = self.workspace_path
        return d


@dataclass
class FileReadResult(WorkspaceResult):
    size: Optional[int] = None
    modified_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.success:
            d["size"] = self.size
            d["modified_at"] = self.modified_at.isoformat() if self.modified_at else None
        return d


@dataclass
class TextFileResult(FileReadResult):
    content: Optional[str] = None

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.success:
            d["content"] = self.content
        return d


@dataclass
class BinaryFileResult(FileReadResult):
    content_base64: Optional[str] = None

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.success:
            d["content"] = self.content_base64
            d["encoding"] = "base64"
        return d


@dataclass(frozen=True)
class FilesChangedEvent:
    """Notification that files under a thread's workspace changed on disk."""
    thread_id: str
    changes: tuple[tuple[str, str], ...]  # (change kind, virtual path)

    def to_dict(self) -> dict:
        return {
            "threadId": self.thread_id,
            "changes": [{"type": kind, "path": path} for kind, path in self.changes],
        }
