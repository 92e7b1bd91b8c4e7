"""Durable, lazily loaded vector store with exact cosine search."""

from __future__ import annotations

import math
import os
import random
import threading
from pathlib import Path
from typing import Iterable, Sequence

import orjson

from vault_index.core.errors import StoreWriteError
from vault_index.core.logging import get_logger, log_context
from vault_index.core.metrics import INDEX_SIZE
from vault_index.ingest.types import DocumentSource
from vault_index.models.entities import DocumentInfo, Entry, SearchResult, StoreStats
from vault_index.utils.time import ms_to_display, utc_now

logger = get_logger(__name__)

STORE_VERSION = "1.0.0"


class VectorStore:
    """Map of document id to Entry, flushed to a JSON file after each change.

    The store starts unloaded; every public operation passes through
    ``_ensure_loaded`` so the file is read once, on first use. Mutations,
    loading and flushing share one re-entrant lock.
    """

    def __init__(
        self,
        path: Path,
        source: DocumentSource,
        sample_size: int = 10,
        rng: random.Random | None = None,
    ) -> None:
        self.path = path.expanduser()
        self.source = source
        self.sample_size = sample_size
        self._rng = rng or random.Random()
        self._entries: dict[str, Entry] = {}
        self._loaded = False
        self._lock = threading.RLock()
        self.last_updated: str | None = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    # Lifecycle --------------------------------------------------------

    def load(self) -> None:
        with self._lock:
            if self._loaded:
                return
            self._entries = {}
            try:
                if self.path.exists():
                    self._hydrate(orjson.loads(self.path.read_bytes()))
            except (OSError, orjson.JSONDecodeError, TypeError, AttributeError) as exc:
                logger.warning("Vector store at %s is unreadable, starting empty: %s", self.path, exc)
                self._entries = {}
            self._loaded = True
            INDEX_SIZE.set(len(self._entries))

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _hydrate(self, payload: dict) -> None:
        version = payload.get("version")
        if version != STORE_VERSION:
            logger.warning("Vector store version %s differs from %s; loading anyway", version, STORE_VERSION)
        self.last_updated = payload.get("lastUpdated")
        for record in payload.get("vectors") or []:
            try:
                entry = Entry.from_record(record)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed vector record: %s", exc)
                continue
            if not entry.embedding:
                logger.warning("Skipping vector record %s with empty embedding", entry.id)
                continue
            self._entries[entry.id] = entry

    def _flush(self) -> None:
        last_updated = utc_now().isoformat()
        payload = {
            "version": STORE_VERSION,
            "lastUpdated": last_updated,
            "vectors": [entry.to_record() for entry in self._entries.values()],
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Failed to write vector store %s: %s", self.path, exc)
            raise StoreWriteError(f"Could not save vector store to {self.path}: {exc}") from exc
        self.last_updated = last_updated
        INDEX_SIZE.set(len(self._entries))

    # Mutations --------------------------------------------------------

    def upsert(self, entry: Entry) -> None:
        self.upsert_batch([entry])

    def upsert_batch(self, entries: Iterable[Entry]) -> None:
        entries = list(entries)
        for entry in entries:
            if not entry.embedding:
                raise ValueError(f"Entry {entry.id} has an empty embedding")
        with self._lock:
            self._ensure_loaded()
            for entry in entries:
                self._entries[entry.id] = entry
            self._flush()

    def remove(self, doc_id: str) -> None:
        with self._lock:
            self._ensure_loaded()
            self._entries.pop(doc_id, None)
            self._flush()

    def clear(self) -> None:
        with self._lock:
            self._ensure_loaded()
            self._entries.clear()
            self._flush()

    # Queries ----------------------------------------------------------

    def get(self, doc_id: str) -> Entry | None:
        with self._lock:
            self._ensure_loaded()
            return self._entries.get(doc_id)

    def ids(self) -> list[str]:
        with self._lock:
            self._ensure_loaded()
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._entries)

    def search(self, query: Sequence[float], k: int = 5) -> list[SearchResult]:
        """Rank every embedded entry by cosine similarity to ``query``."""
        if not query or k <= 0:
            return []
        with self._lock:
            self._ensure_loaded()
            entries = list(self._entries.values())
        results: list[SearchResult] = []
        mismatched = 0
        for entry in entries:
            if not entry.embedding:
                continue
            if len(entry.embedding) != len(query):
                mismatched += 1
            results.append(SearchResult(entry=entry, score=cosine_similarity(query, entry.embedding)))
        if mismatched:
            logger.warning("%s entries have a different dimension than the query (%s)", mismatched, len(query))
        # sorted() is stable with reverse=True, so ties keep store order.
        results = sorted(results, key=lambda item: item.score, reverse=True)
        return results[: min(k, len(results))]

    def stats(self) -> StoreStats:
        with self._lock:
            self._ensure_loaded()
            latest = max((entry.modified for entry in self._entries.values()), default=0)
            total = len(self._entries)
        return StoreStats(total_entries=total, last_updated=ms_to_display(latest) if latest > 0 else "never")

    # Staleness --------------------------------------------------------

    def needs_full_reindex(self) -> bool:
        """Cheap staleness check: counts, then a random sample of watermarks.

        A non-positive sample size makes the check exhaustive.
        """
        with self._lock:
            self._ensure_loaded()
            if not self._entries:
                return True
            documents = self.source.list_all()
            if len(documents) != len(self._entries):
                return True
            if self.sample_size <= 0:
                return bool(self._stale(documents))
            sample = [self._rng.choice(documents) for _ in range(min(self.sample_size, len(documents)))]
            return bool(self._stale(sample))

    def find_modified(self) -> list[DocumentInfo]:
        with self._lock:
            self._ensure_loaded()
            return self._stale(self.source.list_all())

    def purge_deleted(self) -> int:
        with self._lock:
            self._ensure_loaded()
            live_ids = {document.id for document in self.source.list_all()}
            deleted = [doc_id for doc_id in self._entries if doc_id not in live_ids]
            for doc_id in deleted:
                del self._entries[doc_id]
            if deleted:
                logger.info(
                    "Purged %s deleted documents from the vector store",
                    len(deleted),
                    extra=log_context(purged_ids=deleted[:20]),
                )
                self._flush()
            return len(deleted)

    def _stale(self, documents: Iterable[DocumentInfo]) -> list[DocumentInfo]:
        stale: list[DocumentInfo] = []
        for document in documents:
            entry = self._entries.get(document.id)
            if entry is None or document.modified > entry.modified:
                stale.append(document)
        return stale


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity, or 0.0 for mismatched lengths and zero vectors."""
    if len(a) != len(b):
        return 0.0
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


__all__ = ["VectorStore", "cosine_similarity", "STORE_VERSION"]
