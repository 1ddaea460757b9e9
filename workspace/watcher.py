"""Per-thread filesystem watches that report workspace changes."""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from watchfiles import Change, awatch

import constants as C
from .paths import PathEscapeError, to_virtual
from .snapshot import is_ignored_name

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, list[tuple[str, str]]], None]


class WorkspaceFilter:
    """watchfiles filter skipping what the snapshot skips (dot-entries, node_modules)."""

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        self.real_root = os.path.realpath(root)

    def __call__(self, change: Change, path: str) -> bool:
        for base in (self.root, self.real_root):
            try:
                relative = os.path.relpath(path, base)
            except ValueError:
                continue
            if relative == os.pardir or relative.startswith(os.pardir + os.sep):
                continue
            return not any(is_ignored_name(part) for part in relative.split(os.sep) if part != os.curdir)
        return False


@dataclass
class _WatchHandle:
    root: str
    stop_event: asyncio.Event
    task: asyncio.Task


class WorkspaceWatcher:
    """At most one live watch per thread id.

    start() always stops the previous watch for the thread first, so repeated
    calls resolve to the last root. The only output is the listener callback;
    the watcher never snapshots by itself.
    """

    def __init__(
        self,
        on_change: Optional[ChangeListener] = None,
        debounce_ms: int = C.WATCH_DEBOUNCE_MS,
        force_polling: Optional[bool] = None,
        poll_delay_ms: int = C.WATCH_POLL_DELAY_MS,
    ):
        self.on_change = on_change
        self.debounce_ms = debounce_ms
        self.force_polling = force_polling
        self.poll_delay_ms = poll_delay_ms
        self._watches: dict[str, _WatchHandle] = {}

    def start(self, thread_id: str, root: str) -> None:
        """Watch root for thread_id, replacing any existing watch.

        Must be called from a running event loop.
        """
        self.stop(thread_id)
        stop_event = asyncio.Event()
        task = asyncio.get_running_loop().create_task(
            self._run(thread_id, root, stop_event),
            name=f"workspace-watch:{thread_id}",
        )
        self._watches[thread_id] = _WatchHandle(root=root, stop_event=stop_event, task=task)
        logger.info("Watching workspace %s for thread %s", root, thread_id)

    def stop(self, thread_id: str) -> None:
        handle = self._watches.pop(thread_id, None)
        if handle is None:
            return
        handle.stop_event.set()
        handle.task.cancel()
        logger.info("Stopped watching workspace %s for thread %s", handle.root, thread_id)

    def stop_all(self) -> None:
        for thread_id in list(self._watches):
            self.stop(thread_id)

    async def aclose(self) -> None:
        """Stop every watch and wait for the watch tasks to finish."""
        tasks = [handle.task for handle in self._watches.values()]
        self.stop_all()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def is_watching(self, thread_id: str) -> bool:
        return thread_id in self._watches

    def watched_root(self, thread_id: str) -> Optional[str]:
        handle = self._watches.get(thread_id)
        return handle.root if handle else None

    async def _run(self, thread_id: str, root: str, stop_event: asyncio.Event) -> None:
        try:
            await self._watch(thread_id, root, stop_event)
        finally:
            handle = self._watches.get(thread_id)
            # A replacement watch started by start() owns its own entry
            if handle is not None and handle.stop_event is stop_event:
                del self._watches[thread_id]

    async def _watch(self, thread_id: str, root: str, stop_event: asyncio.Event) -> None:
        if not os.path.isdir(root):
            logger.warning("Not watching %s for thread %s: not a directory", root, thread_id)
            return
        try:
            async for changes in awatch(
                root,
                watch_filter=WorkspaceFilter(root),
                debounce=self.debounce_ms,
                step=C.WATCH_STEP_MS,
                stop_event=stop_event,
                force_polling=self.force_polling,
                poll_delay_ms=self.poll_delay_ms,
            ):
                self._emit(thread_id, root, changes)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Notifications are best-effort; a dead watch is not an error state
            logger.warning("Workspace watch for thread %s stopped: %s", thread_id, e)

    def _emit(self, thread_id: str, root: str, changes: set[tuple[Change, str]]) -> None:
        if self.on_change is None:
            return
        real_root = os.path.realpath(root)
        paths: list[tuple[str, str]] = []
        for change, path in sorted(changes, key=lambda c: c[1]):
            try:
                virtual = to_virtual(root, path)
            except PathEscapeError:
                try:
                    virtual = to_virtual(real_root, path)
                except PathEscapeError:
                    continue
            paths.append((change.name, virtual))
        if not paths:
            return
        try:
            self.on_change(thread_id, paths)
        except Exception as e:
            logger.warning("files-changed listener failed for thread %s: %s", thread_id, e)
