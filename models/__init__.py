"""
Data models for the model catalog and workspace views.
"""
from .catalog import DiscoveryCache, ModelDescriptor, Provider, SourceMode
from .workspace import (
    BinaryFileResult,
    FileReadResult,
    FilesChangedEvent,
    SnapshotResult,
    TextFileResult,
    VirtualFileEntry,
    WorkspaceErrorCode,
    WorkspaceResult,
)

__all__ = [
    "DiscoveryCache",
    "ModelDescriptor",
    "Provider",
    "SourceMode",
    "BinaryFileResult",
    "FileReadResult",
    "FilesChangedEvent",
    "SnapshotResult",
    "TextFileResult",
    "VirtualFileEntry",
    "WorkspaceErrorCode",
    "WorkspaceResult",
]
