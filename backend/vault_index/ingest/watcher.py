"""Filesystem watcher that keeps the vector store in step with the vault."""

from __future__ import annotations

import threading
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from vault_index.core.errors import StoreWriteError
from vault_index.core.logging import get_logger
from vault_index.ingest.indexer import Indexer
from vault_index.ingest.sources import FilesystemSource

logger = get_logger(__name__)


class VaultEventHandler(FileSystemEventHandler):
    """Translate filesystem events into single-document index updates."""

    def __init__(self, indexer: Indexer, source: FilesystemSource) -> None:
        super().__init__()
        self.indexer = indexer
        self.source = source

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.refresh(Path(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.refresh(Path(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.forget(Path(event.src_path))
            self.refresh(Path(event.dest_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.forget(Path(event.src_path))

    def refresh(self, path: Path) -> None:
        doc_id = self.source.id_for(path)
        if doc_id is None or not self.source.exists(doc_id):
            return
        try:
            info = self.source.info(doc_id)
        except OSError as exc:
            logger.warning("Could not stat %s: %s", path, exc)
            return
        entry = self.indexer.store.get(doc_id)
        if entry is not None and entry.modified >= info.modified:
            return
        if not self.indexer.index_one(info):
            logger.warning("Could not index %s after change", doc_id)

    def forget(self, path: Path) -> None:
        doc_id = self.source.id_for(path)
        if doc_id is None or self.indexer.store.get(doc_id) is None:
            return
        try:
            self.indexer.store.remove(doc_id)
        except StoreWriteError:
            logger.exception("Failed to remove %s from the vector store", doc_id)


class VaultWatcher:
    """High-level wrapper around a watchdog observer for one vault."""

    def __init__(self, indexer: Indexer, source: FilesystemSource) -> None:
        self._observer: BaseObserver = Observer()
        self._lock = threading.Lock()
        self._started = False
        self.handler = VaultEventHandler(indexer, source)
        self.source = source

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            self._observer.schedule(self.handler, str(self.source.root), recursive=True)
            self._observer.start()
            self._started = True
            logger.info("Watching %s for changes", self.source.root)

    def stop(self) -> None:
        with self._lock:
            if not self._started:
                return
            self._observer.stop()
            self._observer.join(timeout=5)
            # Observer threads cannot be restarted.
            self._observer = Observer()
            self._started = False


__all__ = ["VaultWatcher", "VaultEventHandler"]
