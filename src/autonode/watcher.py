"""Filesystem watcher feeding vault changes into an auto-node session.

Uses watchdog to monitor the vault and forwards markdown creations,
modifications, deletions and moves. Debouncing happens in the session's
scheduler, so every relevant event is passed straight through.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from autonode.models import ChangeEvent, ChangeKind
from autonode.utils.files import is_markdown

LOGGER = logging.getLogger(__name__)


class VaultEventHandler(FileSystemEventHandler):
    """Translates watchdog events into :class:`ChangeEvent` objects."""

    def __init__(self, root: Path, on_event: Callable[[ChangeEvent], None]) -> None:
        super().__init__()
        self.root = Path(root).resolve()
        self._on_event = on_event

    def _relative(self, raw: str | bytes) -> Optional[str]:
        path = Path(os.fsdecode(raw))
        try:
            relative = path.resolve().relative_to(self.root)
        except ValueError:
            return None
        if not is_markdown(path.name) or any(part.startswith(".") for part in relative.parts):
            return None
        return relative.as_posix()

    def _emit(self, kind: ChangeKind, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._relative(event.src_path)
        if path is None:
            return
        LOGGER.debug("Note %s: %s", kind, path)
        self._dispatch(ChangeEvent(kind, path))

    def _dispatch(self, change: ChangeEvent) -> None:
        try:
            self._on_event(change)
        except Exception:
            LOGGER.exception("Error handling %s event for %s", change.kind, change.path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._emit("created", event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._emit("modified", event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._emit("deleted", event)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        old_path = self._relative(event.src_path)
        new_path = self._relative(getattr(event, "dest_path", ""))
        if new_path is None and old_path is not None:
            self._dispatch(ChangeEvent("deleted", old_path))
        elif new_path is not None and old_path is None:
            self._dispatch(ChangeEvent("created", new_path))
        elif new_path is not None:
            self._dispatch(ChangeEvent("renamed", new_path, old_path=old_path))


def start_watcher(root: Path, on_event: Callable[[ChangeEvent], None]) -> Observer:  # type: ignore[valid-type]
    """Start watching the vault for note changes.

    Returns the Observer instance (call .stop() to shut down).
    """
    handler = VaultEventHandler(root, on_event)
    observer = Observer()
    observer.schedule(handler, str(root), recursive=True)
    observer.daemon = True
    observer.start()
    LOGGER.info("Watching %s for note changes", root)
    return observer
