"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from vault_index.models.entities import SearchResult


class IndexRequest(BaseModel):
    mode: Literal["all", "modified"] = Field(default="all", description="Full sync or only new/changed notes")


class IndexResponse(BaseModel):
    indexed: int
    rejected: bool = Field(default=False, description="True when another run was already in progress")
    stats: dict[str, Any] | None = None


class QueryRequest(BaseModel):
    query: str
    k: int | None = Field(default=None, ge=1, le=50)


class NoteResult(BaseModel):
    id: str
    title: str
    score: float
    tags: list[str]
    modified: int
    content: str | None = None

    @classmethod
    def from_result(cls, result: SearchResult, include_content: bool = False) -> "NoteResult":
        entry = result.entry
        return cls(
            id=entry.id,
            title=entry.title,
            score=result.score,
            tags=list(entry.tags),
            modified=entry.modified,
            content=entry.content if include_content else None,
        )


class QueryResponse(BaseModel):
    results: list[NoteResult]


class ChatMessageModel(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessageModel] = Field(min_length=1)
    k: int | None = Field(default=None, ge=1, le=50)


class ChatResponse(BaseModel):
    reply: str
    sources: list[NoteResult]


class StatsResponse(BaseModel):
    total_entries: int
    last_updated: str
    indexing: bool
    last_run: dict[str, Any] | None = None


class ClearResponse(BaseModel):
    status: Literal["ok"]


class ProviderHealthResponse(BaseModel):
    ok: bool
    provider: str


__all__ = [
    "IndexRequest",
    "IndexResponse",
    "QueryRequest",
    "QueryResponse",
    "NoteResult",
    "ChatMessageModel",
    "ChatRequest",
    "ChatResponse",
    "StatsResponse",
    "ClearResponse",
    "ProviderHealthResponse",
]
