"""
GTK folder chooser used to pick a thread's workspace.

Dialogs must run on the GTK main thread while callers live on the asyncio
loop, so show() blocks a worker thread until the dialog closes.
"""
import asyncio
import logging
import os
import threading
from typing import Optional

import gi
gi.require_version("Gtk", "3.0")
from gi.repository import Gtk, GLib

logger = logging.getLogger(__name__)


class GtkDirectoryPicker:
    """Directory picker backed by Gtk.FileChooserDialog."""

    def __init__(self, parent: Optional[Gtk.Window] = None, timeout_sec: float = 600.0):
        self.parent = parent
        self.timeout_sec = timeout_sec

    async def show(self) -> dict:
        """Show the chooser and return {"canceled": bool, "paths": [str]}."""
        return await asyncio.to_thread(self._show_blocking)

    def _show_blocking(self) -> dict:
        done = threading.Event()
        result = {"canceled": True, "paths": []}

        def _show() -> bool:
            chooser = Gtk.FileChooserDialog(
                title="Select Workspace Folder",
                transient_for=self.parent,
                action=Gtk.FileChooserAction.SELECT_FOLDER,
            )
            chooser.add_button("Cancel", Gtk.ResponseType.CANCEL)
            chooser.add_button("Select", Gtk.ResponseType.OK)
            chooser.set_modal(True)
            chooser.set_create_folders(True)
            try:
                response = chooser.run()
                if response == Gtk.ResponseType.OK:
                    selected = chooser.get_filename()
                    if selected and os.path.isdir(selected):
                        result["canceled"] = False
                        result["paths"] = [selected]
            finally:
                chooser.destroy()
                done.set()
            return False

        GLib.idle_add(_show)
        if not done.wait(timeout=self.timeout_sec):
            logger.warning("Workspace folder dialog timed out")
        return result
