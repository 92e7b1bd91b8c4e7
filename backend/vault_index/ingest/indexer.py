"""Indexing orchestration: source documents to embeddings to the vector store."""

from __future__ import annotations

import threading
import time
from typing import Callable, Sequence

from vault_index.core.config import Settings
from vault_index.core.errors import ProviderError, StoreWriteError
from vault_index.core.logging import get_logger, log_context
from vault_index.core.metrics import EMBED_BATCH_FAILURES, INDEX_DURATION, INDEX_RUNS
from vault_index.ingest.preprocess import extract_tags, preprocess_content
from vault_index.ingest.types import (
    DocumentSource,
    EmbeddingOutcome,
    EmbeddingProvider,
    IndexStats,
    PreparedDocument,
)
from vault_index.models.entities import DocumentInfo, Entry
from vault_index.retrieval.vector_store import VectorStore

logger = get_logger(__name__)


class Indexer:
    """Coordinate reading, preprocessing, embedding and persistence.

    Only one full or incremental run may be in flight; a request that
    arrives while another run holds the guard returns 0 straight away.
    """

    def __init__(
        self,
        store: VectorStore,
        source: DocumentSource,
        provider: EmbeddingProvider,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.source = source
        self.provider = provider
        self.settings = settings
        self._sleep = sleep
        self._guard = threading.Lock()
        self.last_run: IndexStats | None = None

    @property
    def is_indexing(self) -> bool:
        return self._guard.locked()

    def index_all(self) -> int:
        """Purge deleted documents, then embed every live document."""
        return self.run("all").processed

    def index_modified(self) -> int:
        """Embed only documents that are new or newer than their watermark."""
        return self.run("modified").processed

    def run(self, mode: str) -> IndexStats:
        """Run a full (``"all"``) or incremental (``"modified"``) pass.

        The returned stats have ``rejected`` set when another run already
        held the guard; ``last_run`` is left untouched in that case.
        """
        if mode == "all":
            return self._run(mode, self._collect_all)
        if mode == "modified":
            return self._run(mode, lambda stats: self.store.find_modified())
        raise ValueError(f"Unknown indexing mode: {mode}")

    def index_one(self, document: DocumentInfo) -> bool:
        stats = IndexStats(mode="one")
        prepared = self._prepare(document, stats)
        if prepared is None:
            return False
        entries = self._entries_from(self._embed(0, [prepared]), stats)
        if not entries:
            return False
        try:
            self.store.upsert(entries[0])
        except StoreWriteError:
            logger.exception("Failed to store embedding for %s", document.id)
            return False
        return True

    # Internal helpers -------------------------------------------------

    def _collect_all(self, stats: IndexStats) -> list[DocumentInfo]:
        stats.purged = self.store.purge_deleted()
        return self.source.list_all()

    def _run(self, mode: str, collect: Callable[[IndexStats], list[DocumentInfo]]) -> IndexStats:
        if not self._guard.acquire(blocking=False):
            logger.info("Indexing already in progress, ignoring %s request", mode)
            INDEX_RUNS.labels(mode=mode, outcome="rejected").inc()
            return IndexStats(mode=mode, rejected=True)

        stats = IndexStats(mode=mode)
        outcome = "failed"
        start_time = time.perf_counter()
        try:
            documents = collect(stats)
            if not documents:
                logger.info("No documents to index (%s)", mode)
                outcome = "empty"
                return stats
            logger.info("Indexing %s documents (%s)", len(documents), mode)
            entries = self._process(documents, stats)
            if entries:
                self.store.upsert_batch(entries)
            stats.processed = len(entries)
            outcome = "completed"
            logger.info(
                "Indexed %s documents (%s)",
                stats.processed,
                mode,
                extra=log_context(**stats.to_dict()),
            )
            return stats
        except Exception as exc:
            logger.exception("Indexing run failed: %s", exc)
            raise
        finally:
            stats.duration_s = time.perf_counter() - start_time
            INDEX_DURATION.labels(mode=mode).observe(stats.duration_s)
            INDEX_RUNS.labels(mode=mode, outcome=outcome).inc()
            self.last_run = stats
            self._guard.release()

    def _process(self, documents: Sequence[DocumentInfo], stats: IndexStats) -> list[Entry]:
        size = self.settings.batch_size
        delay = self.settings.batch_delay_ms / 1000
        entries: list[Entry] = []
        for number, offset in enumerate(range(0, len(documents), size)):
            if number and delay:
                self._sleep(delay)
            prepared = [
                item
                for item in (self._prepare(document, stats) for document in documents[offset : offset + size])
                if item is not None
            ]
            if not prepared:
                continue
            entries.extend(self._entries_from(self._embed(number, prepared), stats))
        return entries

    def _prepare(self, document: DocumentInfo, stats: IndexStats) -> PreparedDocument | None:
        try:
            raw = self.source.read(document.id)
        except Exception as exc:
            logger.warning("Failed to read %s: %s", document.id, exc)
            stats.failed += 1
            return None
        text = preprocess_content(raw, document.title, document.id)
        if not text:
            logger.debug("Skipping %s, no content after preprocessing", document.id)
            stats.skipped += 1
            return None
        return PreparedDocument(info=document, text=text, tags=extract_tags(text, raw))

    def _embed(self, number: int, prepared: list[PreparedDocument]) -> EmbeddingOutcome:
        outcome = EmbeddingOutcome(batch_number=number, documents=prepared)
        try:
            vectors = self.provider.embed_batch([item.text for item in prepared])
            if len(vectors) != len(prepared):
                raise ProviderError(f"Provider returned {len(vectors)} vectors for {len(prepared)} texts")
            outcome.vectors = vectors
        except Exception as exc:
            logger.warning("Embedding batch %s failed: %s", number, exc)
            EMBED_BATCH_FAILURES.inc()
            outcome.error = exc
        return outcome

    def _entries_from(self, outcome: EmbeddingOutcome, stats: IndexStats) -> list[Entry]:
        if not outcome.ok:
            stats.failed += len(outcome.documents)
            stats.failed_batches.append(outcome.batch_number)
            return []
        entries: list[Entry] = []
        for item, vector in zip(outcome.documents, outcome.vectors or []):
            if not vector:
                logger.warning("Provider returned an empty embedding for %s", item.info.id)
                stats.failed += 1
                continue
            entries.append(
                Entry(
                    id=item.info.id,
                    embedding=[float(value) for value in vector],
                    content=item.text[: self.settings.content_cap],
                    title=item.info.title,
                    modified=item.info.modified,
                    tags=item.tags,
                )
            )
        return entries


__all__ = ["Indexer"]
