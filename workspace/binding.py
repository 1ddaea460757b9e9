"""
Thread-to-workspace binding.

Each thread stores its workspace root under the `workspacePath` key of its
JSON metadata. Without a thread id, a global fallback setting is used; that
mode predates per-thread watching and is never watched.

Only set() and select_via_dialog() start or stop watches. load_snapshot()
never does: a snapshot triggered by a change notification must not re-arm
the watch that produced it.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, Optional

import constants as C
from models import (
    BinaryFileResult,
    FilesChangedEvent,
    SnapshotResult,
    TextFileResult,
    WorkspaceErrorCode,
)
from storage import SettingsStore, ThreadStore
from . import reader
from .snapshot import snapshot
from .watcher import WorkspaceWatcher

logger = logging.getLogger(__name__)

FilesChangedListener = Callable[[FilesChangedEvent], None]


def _parse_metadata(raw: object, thread_id: str) -> Optional[dict]:
    """Decode thread metadata; {} when absent, None when present but unusable."""
    if not raw:
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Unreadable metadata for thread %s: %s", thread_id, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Metadata for thread %s is not a JSON object", thread_id)
        return None
    return data


class WorkspaceBinding:
    """Owns the thread -> workspace root mapping and coordinates reads and watches."""

    def __init__(
        self,
        threads: ThreadStore,
        settings: SettingsStore,
        watcher: Optional[WorkspaceWatcher] = None,
        picker=None,
    ):
        """
        Args:
            threads: Store with get_thread(id) / update_thread(id, updates).
            settings: Store holding the global fallback workspace path.
            watcher: Watcher to drive; one is created if omitted.
            picker: Object with `async show() -> {"canceled": bool, "paths": [...]}`.
        """
        self.threads = threads
        self.settings = settings
        self.watcher = watcher or WorkspaceWatcher()
        self.watcher.on_change = self._on_watch_change
        self.picker = picker
        self._listeners: list[FilesChangedListener] = []

    def add_listener(self, listener: FilesChangedListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FilesChangedListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _on_watch_change(self, thread_id: str, changes: list[tuple[str, str]]) -> None:
        event = FilesChangedEvent(thread_id=thread_id, changes=tuple(changes))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning("%s listener failed: %s", C.EVENT_FILES_CHANGED, e)

    def get(self, thread_id: Optional[str] = None) -> Optional[str]:
        """Return the bound root for a thread, or the global fallback without one."""
        if not thread_id:
            return self.settings.get(C.SETTING_WORKSPACE_PATH, None)
        thread = self.threads.get_thread(thread_id)
        if not thread:
            return None
        metadata = _parse_metadata(thread.get("metadata"), thread_id) or {}
        return metadata.get(C.THREAD_META_WORKSPACE_PATH) or None

    async def set(self, thread_id: Optional[str], path: Optional[str]) -> Optional[str]:
        """Bind, rebind or (with path=None) unbind a workspace.

        Metadata that exists but cannot be decoded is left untouched and no
        watch is started.

        Returns:
            The path written, or None if the thread does not exist or its
            metadata is unreadable.
        """
        if not thread_id:
            if path:
                self.settings.set(C.SETTING_WORKSPACE_PATH, path)
            else:
                self.settings.delete(C.SETTING_WORKSPACE_PATH)
            return path

        thread = self.threads.get_thread(thread_id)
        if not thread:
            logger.warning("Cannot bind workspace: thread %s not found", thread_id)
            return None

        metadata = _parse_metadata(thread.get("metadata"), thread_id)
        if metadata is None:
            logger.error("Not binding workspace: metadata of thread %s would be overwritten", thread_id)
            return None
        metadata[C.THREAD_META_WORKSPACE_PATH] = path
        self.threads.update_thread(thread_id, {"metadata": json.dumps(metadata)})

        if path:
            logger.info("Bound thread %s to workspace %s", thread_id, path)
            self.watcher.start(thread_id, path)
        else:
            logger.info("Unbound workspace from thread %s", thread_id)
            self.watcher.stop(thread_id)
        return path

    async def select_via_dialog(self, thread_id: Optional[str] = None) -> Optional[str]:
        """Ask the user for a folder and bind it.

        Returns the selected folder even when the thread could not be bound,
        or None if the dialog is cancelled.
        """
        if self.picker is None:
            logger.warning("No directory picker configured")
            return None
        result = await self.picker.show()
        paths = result.get("paths") or []
        if result.get("canceled") or not paths:
            return None
        selected = paths[0]
        await self.set(thread_id, selected)
        return selected

    async def load_snapshot(self, thread_id: Optional[str]) -> SnapshotResult:
        root = self.get(thread_id)
        if not root:
            return SnapshotResult.failure(WorkspaceErrorCode.NO_WORKSPACE)
        try:
            files = await asyncio.to_thread(snapshot, root)
        except OSError as e:
            logger.warning("Snapshot of %s failed: %s", root, e)
            return SnapshotResult.failure(WorkspaceErrorCode.IO_ERROR, str(e))
        return SnapshotResult(success=True, files=files, workspace_path=root)

    async def read_text(self, thread_id: Optional[str], virtual_path: str) -> TextFileResult:
        return await asyncio.to_thread(reader.read_text, self.get(thread_id), virtual_path)

    async def read_binary(self, thread_id: Optional[str], virtual_path: str) -> BinaryFileResult:
        return await asyncio.to_thread(reader.read_binary, self.get(thread_id), virtual_path)
