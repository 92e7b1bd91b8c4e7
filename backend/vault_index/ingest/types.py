"""Common indexing data structures and collaborator interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from vault_index.models.entities import DocumentInfo


class DocumentSource(Protocol):
    """Enumerates live documents and reads their content."""

    def list_all(self) -> list[DocumentInfo]: ...

    def read(self, doc_id: str) -> str: ...

    def exists(self, doc_id: str) -> bool: ...


@dataclass(slots=True)
class ChatMessage:
    role: str
    content: str


class EmbeddingProvider(Protocol):
    """Turns text into vectors and conversations into replies."""

    name: str

    def embed(self, text: str) -> list[float]: ...

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]: ...

    def chat(self, messages: Sequence[ChatMessage], context: Sequence[str]) -> str: ...

    def test_connection(self) -> bool: ...


@dataclass(slots=True)
class PreparedDocument:
    """A document read and preprocessed, waiting for its embedding."""

    info: DocumentInfo
    text: str
    tags: list[str]


@dataclass(slots=True)
class EmbeddingOutcome:
    """Result of embedding one batch: all vectors, or the batch error."""

    batch_number: int
    documents: list[PreparedDocument]
    vectors: list[list[float]] | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.vectors is not None


@dataclass(slots=True)
class IndexStats:
    """Aggregated statistics for one indexing run."""

    mode: str = "all"
    rejected: bool = False
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    failed_batches: list[int] = field(default_factory=list)
    purged: int = 0
    duration_s: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "mode": self.mode,
            "rejected": self.rejected,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "failed_batches": list(self.failed_batches),
            "purged": self.purged,
            "duration_s": round(self.duration_s, 3),
        }


__all__ = [
    "DocumentSource",
    "EmbeddingProvider",
    "ChatMessage",
    "PreparedDocument",
    "EmbeddingOutcome",
    "IndexStats",
]
