"""Internal dataclasses representing stored and live entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class Entry:
    """One embedded document, keyed by its path."""

    id: str
    embedding: list[float]
    content: str
    title: str
    modified: int
    tags: list[str] = field(default_factory=list)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "embedding": self.embedding,
            "content": self.content,
            "title": self.title,
            "modified": self.modified,
            "tags": self.tags,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Entry":
        tags = record.get("tags") or []
        return cls(
            id=str(record["id"]),
            embedding=[float(value) for value in record["embedding"]],
            content=str(record.get("content") or ""),
            title=str(record.get("title") or ""),
            modified=int(record.get("modified") or 0),
            tags=[str(tag) for tag in tags],
        )


@dataclass(slots=True)
class DocumentInfo:
    """A live document as reported by a document source."""

    id: str
    title: str
    modified: int


@dataclass(slots=True)
class SearchResult:
    entry: Entry
    score: float


@dataclass(slots=True)
class StoreStats:
    total_entries: int
    last_updated: str


__all__ = ["Entry", "DocumentInfo", "SearchResult", "StoreStats"]
